"""Onboard a merchant and optionally store a connected payment account.

Usage:
    python scripts/onboard_merchant.py owner@example.com --name "Example Co" \
        --account-id acct_123 --access-token sk_... [--live]
"""

import argparse
import logging
import sys

import recoverhub.models  # noqa: F401
from recoverhub.core.config import settings
from recoverhub.core.database import Database
from recoverhub.core.logging_config import configure_logging
from recoverhub.services.credential_vault import CredentialVault
from recoverhub.services.merchant_service import MerchantService

logger = logging.getLogger("onboard_merchant")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("email")
    parser.add_argument("--name")
    parser.add_argument("--platform-customer-id")
    parser.add_argument("--account-id")
    parser.add_argument("--account-name")
    parser.add_argument("--access-token")
    parser.add_argument("--live", action="store_true")
    args = parser.parse_args(argv)

    if bool(args.account_id) != bool(args.access_token):
        parser.error("--account-id and --access-token must be given together")

    configure_logging(settings.LOG_LEVEL)
    database = Database(settings.APP_DATABASE_DSN)
    db = database.session()
    try:
        service = MerchantService(db)
        try:
            merchant = service.onboard(args.email, args.name, args.platform_customer_id)
        except ValueError as exc:
            logger.error("%s", exc)
            return 1

        if args.account_id:
            service.connect_account(
                merchant.id,  # type: ignore[arg-type]
                args.account_id,
                args.access_token,
                CredentialVault(settings.ENCRYPTION_KEY),
                is_live_mode=args.live,
                account_name=args.account_name,
            )
        print(merchant.id)
    finally:
        db.close()
        database.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
