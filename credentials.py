import bcrypt


def hash_password(password: str, rounds=None) -> str:
    """Hash a password using bcrypt. An empty password means "no password"."""
    if not password:
        return ""
    salt = bcrypt.gensalt(rounds=rounds) if rounds else bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password, hashed: str) -> bool:
    """Verify a password against its hash. An empty hash always matches."""
    if not hashed:
        return True
    try:
        return bcrypt.checkpw((password or "").encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False
