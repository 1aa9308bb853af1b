"""
Optout Starter
==============

A ready-to-run unsubscribe registry.

Run with:
    python app.py

Visit:
    http://localhost:5000/health                          - Health check
    http://localhost:5000/admin/unsubscribes?token=...    - Admin view

Record an unsubscribe:
    curl -X POST -d "email=a@example.com&site=blog" http://localhost:5000/unsubscribe
"""

from optout import create_app
from optout.core.config import Config

# Create the app - this registers all modules automatically
app = create_app()


# =============================================================================
# Run the app
# =============================================================================

if __name__ == '__main__':
    print("\n" + "=" * 60)
    print("Optout Unsubscribe Registry")
    print("=" * 60)
    print(f"Unsubscribe:     POST http://localhost:{Config.port}/unsubscribe")
    print(f"Admin View:      http://localhost:{Config.port}/admin/unsubscribes?token=...")
    print(f"Health:          http://localhost:{Config.port}/health")
    print("=" * 60 + "\n")

    app.run(host='0.0.0.0', port=Config.port, debug=False)
