import os
import subprocess
from datetime import datetime

from sgm import create_app

app = create_app()

with app.app_context():
    url = app.config["SQLALCHEMY_DATABASE_URI"].replace("postgresql+psycopg://", "postgresql://", 1)
    if not url.startswith("postgresql://"):
        raise SystemExit("Backup disponível apenas para PostgreSQL (defina DATABASE_URL).")

    filename = f"backup_sgm_{datetime.now().strftime('%Y%m%d_%H%M')}.sql"
    with open(filename, "w") as f:
        subprocess.run(["pg_dump", url], stdout=f, check=True, env=os.environ.copy())
    print("Backup gerado:", filename)
