from uuid import UUID

# Fixed identity for the local single-user install
SINGLE_USER_ID = UUID("00000000-0000-0000-0000-000000000001")


def get_current_user_id() -> UUID:
    """Stub for getting current user ID in single-user mode.

    Routes depend on this; tests override it to act as another user.
    """
    return SINGLE_USER_ID
