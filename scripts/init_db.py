import sys
import os

# Add parent directory to path so we can import from root
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from sqlalchemy import inspect

from database import make_engine
from models import Base

load_dotenv()

def init_database():
    """Create the order and payment tables for the SQL store"""
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("DATABASE_URL is not set; the API will keep orders in memory.")
        return False

    engine = make_engine(database_url)
    Base.metadata.create_all(bind=engine)

    tables = inspect(engine).get_table_names()
    print("Database initialized. Tables:")
    for table in sorted(tables):
        print(f"  - {table}")
    return True

if __name__ == "__main__":
    sys.exit(0 if init_database() else 1)
