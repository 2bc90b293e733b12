#!/usr/bin/env python3
"""Plaid and Dwolla credential setup script.

Validates Plaid API credentials by creating a sandbox link token and Dwolla
credentials by requesting an application token, then offers to store them
in the system keychain.

Usage:
    1. Get your Plaid client_id and secret from https://dashboard.plaid.com/
    2. Get your Dwolla key and secret from https://dashboard.dwolla.com/
    3. Run this script and follow the prompts
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from integrations.dwolla_client import DwollaClient
from integrations.exceptions import ProviderError
from integrations.plaid_client import PlaidClient
from logging_config import setup_logging
from services.credential_manager import set_credential

ENVIRONMENTS = {"1": "sandbox", "2": "production"}


def store_credentials(credentials: dict[str, str]) -> None:
    """Prompt the user to store credentials in the system keychain."""
    answer = input("\nStore these credentials in the keychain? [Y/n] ").strip().lower()
    if answer in ("", "y", "yes"):
        for key, value in credentials.items():
            if set_credential(key, value):
                print(f"  Stored {key} in keychain")
            else:
                print(f"  Failed to store {key}")
    else:
        print("  Skipped keychain storage.")


def validate_plaid(client_id: str, secret: str, env: str) -> None:
    """Validate Plaid credentials by creating a test link token.

    Raises:
        ProviderError: If Plaid rejects the request.
    """
    client = PlaidClient(client_id, secret, env)
    client.create_link_token(client_user_id="setup-test", client_name="linkbank")


def validate_dwolla(key: str, secret: str, env: str) -> None:
    """Validate Dwolla credentials by requesting an application token.

    Raises:
        ProviderError: If Dwolla refuses the credentials.
    """
    client = DwollaClient(key, secret, env)
    try:
        client.verify_credentials()
    finally:
        client.close()


def _prompt(label: str) -> str:
    value = input(f"Enter your {label}: ").strip()
    if not value:
        print(f"Error: No {label} provided")
        sys.exit(1)
    return value


def _prompt_environment(service: str) -> str:
    print()
    print(f"Choose {service} environment:")
    print("  1. sandbox (for testing with fake data)")
    print("  2. production (for live use)")
    choice = input("Enter choice (1 or 2) [1]: ").strip() or "1"
    return ENVIRONMENTS.get(choice, "sandbox")


def main():
    """Prompt for credentials, validate them and offer keychain storage."""
    setup_logging("WARNING")

    print("linkbank credential setup")
    print("=" * 50)
    print()

    plaid_client_id = _prompt("Plaid client_id")
    plaid_secret = _prompt("Plaid secret")
    plaid_env = _prompt_environment("Plaid")

    print()
    dwolla_key = _prompt("Dwolla key")
    dwolla_secret = _prompt("Dwolla secret")
    dwolla_env = _prompt_environment("Dwolla")

    print()
    print(f"Validating Plaid credentials against {plaid_env}...")
    try:
        validate_plaid(plaid_client_id, plaid_secret, plaid_env)
    except ProviderError as e:
        print(f"Error: {e}")
        print("Check that the keys match the selected environment.")
        sys.exit(1)

    print(f"Validating Dwolla credentials against {dwolla_env}...")
    try:
        validate_dwolla(dwolla_key, dwolla_secret, dwolla_env)
    except ProviderError as e:
        print(f"Error: {e}")
        print("Check that the key and secret match the selected environment.")
        sys.exit(1)

    print()
    print("Success! Add the following to your .env file:")
    print()
    print(f"PLAID_ENVIRONMENT={plaid_env}")
    print(f"DWOLLA_ENVIRONMENT={dwolla_env}")

    store_credentials({
        "PLAID_CLIENT_ID": plaid_client_id,
        "PLAID_SECRET": plaid_secret,
        "DWOLLA_KEY": dwolla_key,
        "DWOLLA_SECRET": dwolla_secret,
    })


if __name__ == "__main__":
    main()
