import logging

logger = logging.getLogger(__name__)


def is_in_scope(thread, allow_list):
    """True when the thread involves a target user. Empty allow-list = everyone."""
    if not allow_list:
        return True
    for username in thread.usernames:
        if username.lower() in allow_list:
            logger.debug(f"[filter] found target user: {username}")
            return True
    return False
