"""
Basic usage example of AuthSession.

Creates a session key, has a local wallet certify it, logs in and exchanges
the certificate for a session token. Run ``passgate wallet wallet.pem`` first
and point PASSGATE_SERVER_HOST/PORT at a running verifier.
"""

import logging
import sys
from pathlib import Path

from passgate import AuthClient, AuthSession
from passgate.client.infrastructure.transaction_builder import (
    JsonTransactionBuilder,
    verify_passport_call,
)
from passgate.client.infrastructure.wallet import LocalWalletSigner
from passgate.common.exceptions import AuthError, CapabilityMissing
from passgate.common.models import ClientConfig

RESOURCE_ID = "0x" + "a" * 64


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    client = AuthClient(ClientConfig(log_level=logging.INFO))
    wallet = LocalWalletSigner.load(Path("wallet.pem"))
    session = AuthSession(client, wallet)

    try:
        session.create_key()
        login = session.login()
        logger.info("Logged in as %s (new user: %s)", wallet.address(), login.is_new_user)

        if not login.has_game_entry:
            logger.info("No game entry yet, acquire one before requesting a token")
            return

        entry = client.check_game_entry(wallet.address())
        build_fragment = verify_passport_call(
            JsonTransactionBuilder(),
            client.loader.package_id,
            RESOURCE_ID,
            entry.passport_id,
            entry.game_entry_id,
        )
        token = session.request_token(build_fragment)
        logger.info("Session token valid until %s", token.expires_at)
    except CapabilityMissing:
        logger.info("Capability missing; session stays signed for a retry")
    except AuthError:
        logger.exception("Authentication failed")
        sys.exit(1)
    finally:
        session.logout()


if __name__ == "__main__":
    main()
