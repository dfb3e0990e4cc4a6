import os
import time
import psycopg2

def build_db_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        # psycopg2 não entende o sufixo do driver async
        return url.replace("postgresql+asyncpg://", "postgresql://", 1)
    host = os.getenv("DB_HOST", "db")
    port = os.getenv("DB_PORT", "5432")
    user = os.getenv("DB_USER", "unitree")
    password = os.getenv("DB_PASSWORD", "unitree")
    name = os.getenv("DB_NAME", "unitree")
    return f"postgresql://{user}:{password}@{host}:{port}/{name}"

def main() -> int:
    timeout_s = int(os.getenv("DB_WAIT_TIMEOUT", "60"))
    interval_s = float(os.getenv("DB_WAIT_INTERVAL", "2"))
    url = build_db_url()
    start = time.time()

    while time.time() - start < timeout_s:
        try:
            conn = psycopg2.connect(url)
            conn.close()
            print("[wait_for_db] Postgres is ready")
            return 0
        except psycopg2.OperationalError as e:
            print(f"[wait_for_db] waiting for Postgres... ({e})")
            time.sleep(interval_s)

    print("[wait_for_db] ERROR: Postgres not ready")
    return 1

if __name__ == "__main__":
    raise SystemExit(main())
