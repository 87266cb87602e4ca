import os

from frota import database
from frota.app import create_app

os.environ.setdefault("DATABASE_URL", "sqlite:///frota_dev.db")

print("⏳ [RUNNER] Creating app...")
app = create_app({"DATABASE_URL": os.environ["DATABASE_URL"]})
database.create_all()
print("✅ [RUNNER] App ready.")

if __name__ == "__main__":
    try:
        port = int(os.environ.get("PORT", 8080))
        print(f"🚀 [RUNNER] STARTING APP ON PORT {port}...")
        app.run(host="0.0.0.0", port=port, debug=True, use_reloader=False)
    except Exception as e:
        print(f"❌ [RUNNER] ERROR: {e}")
