"""Command line interface for testing configuration loading"""
from . import settings_conf, SETTINGS_DIR
from pathlib import Path

SECRET_KEYS = {'jwt_secret'}

def main():
    """Display loaded configuration"""
    print("\nSettings Configuration:")
    print(f"(from {Path(SETTINGS_DIR).resolve() / 'settings.conf'})")
    print("-" * 50)
    for key, value in settings_conf.items():
        if key in SECRET_KEYS:
            value = '********'
        print(f"{key}: {value}")

    # Save example configuration file
    examples_dir = Path("examples")
    examples_dir.mkdir(exist_ok=True)

    with open(examples_dir / "settings.conf.example", "w") as f:
        f.write("""[DEFAULT]
# Store backend: memory or postgres
store_backend = postgres
db_url = postgresql://root@localhost:26257/ledger?sslmode=disable
# Secret shared with the upstream identity provider
jwt_secret = change-me
jwt_algorithm = HS256
api_host = 0.0.0.0
api_port = 8000
log_level = INFO
# Identities allowed to credit accounts
treasury_identities =
derive_seller_from_listing = false
require_buyer_for_comments = false
""")

if __name__ == "__main__":
    main()
