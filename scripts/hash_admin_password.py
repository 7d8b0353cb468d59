import sys
import os
import getpass

# Add parent directory to path so we can import from root
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from auth import get_password_hash

def main():
    """Print the ADMIN_PASSWORD_HASH value for a new admin console password"""
    if len(sys.argv) > 1:
        password = sys.argv[1]
    else:
        password = getpass.getpass("New admin password: ")
        if password != getpass.getpass("Confirm password: "):
            print("❌ Error: passwords do not match")
            return 1

    if len(password) < 8:
        print("❌ Error: password must be at least 8 characters")
        return 1

    print("✅ Add this line to your .env file:")
    print(f"ADMIN_PASSWORD_HASH={get_password_hash(password)}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
