import os
import sys
import uvicorn
from dotenv import load_dotenv

if __name__ == "__main__":
    # Load .env from the project root before accounting_api.core.config reads the environment
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    env_path = os.path.join(project_root, '.env')
    if os.path.exists(env_path):
        print(f"Loading environment from .env: {env_path}")
        load_dotenv(env_path)
    else:
        print(f".env not found at {env_path}, using process environment")

    # Make the package importable when started from anywhere
    sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

    port = int(os.environ.get("PORT", "5000"))
    reload = os.environ.get("RELOAD", "").lower() in ("1", "true", "yes")

    print(f"Starting Accounting API on port {port}...")
    uvicorn.run("accounting_api.main:app", host="0.0.0.0", port=port, log_level="info", reload=reload)
