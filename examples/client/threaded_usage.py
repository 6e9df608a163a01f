"""
Threaded usage example of AuthSession.

A background thread follows the session's state transitions while the main
thread drives the login. Cancelling the wallet prompt from another thread
leaves the session key in place for a retry.
"""

import logging
import queue
import threading
from pathlib import Path

from passgate import AuthClient, AuthSession
from passgate.client.domain.entities import AuthState
from passgate.client.infrastructure.wallet import LocalWalletSigner
from passgate.common.exceptions import AuthError


def watch(events: queue.Queue, stop: threading.Event) -> None:
    logger = logging.getLogger("watcher")
    while not stop.is_set():
        try:
            transition = events.get(timeout=0.5)
        except queue.Empty:
            continue
        logger.info("%s -> %s", transition.previous.value, transition.current.value)
        if transition.current in (AuthState.EXPIRED, AuthState.UNAUTHENTICATED):
            logger.info("Session ended: %s", transition.reason)


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    session = AuthSession(AuthClient(), LocalWalletSigner.load(Path("wallet.pem")))
    stop = threading.Event()
    watcher = threading.Thread(target=watch, args=(session.subscribe(), stop), daemon=True)
    watcher.start()

    cancel = threading.Event()
    try:
        session.create_key()
        session.login(cancel)
        logger.info("Current state: %s", session.state.value)
    except AuthError:
        logger.exception("Login failed")
    finally:
        session.logout()
        stop.set()
        watcher.join()


if __name__ == "__main__":
    main()
