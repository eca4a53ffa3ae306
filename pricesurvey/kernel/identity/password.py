"""
Password hashing utilities using bcrypt.
"""

import bcrypt

# Cost factor; stored inside each hash, so raising it only affects new hashes
BCRYPT_ROUNDS = 12

# bcrypt ignores everything past 72 bytes
_BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """One-way salted password hashing. Stateless."""

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]

    @staticmethod
    def hash(password: str) -> str:
        """
        Hash a password with a fresh salt.

        Args:
            password: Plain text password

        Returns:
            bcrypt hash string (``$2b$<rounds>$...``)
        """
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        return bcrypt.hashpw(PasswordHasher._encode(password), salt).decode("utf-8")

    @staticmethod
    def verify(plain_password: str, hashed_password: str) -> bool:
        """
        Check a password against a stored hash.

        A malformed or empty hash never verifies.
        """
        if not hashed_password:
            return False
        try:
            return bcrypt.checkpw(
                PasswordHasher._encode(plain_password),
                hashed_password.encode("utf-8"),
            )
        except ValueError:
            # bcrypt raises ValueError("Invalid salt") on malformed hashes
            return False

    @staticmethod
    def needs_rehash(hashed_password: str) -> bool:
        """True when the hash was made with a different cost factor."""
        parts = hashed_password.split("$")
        if len(parts) < 4 or not parts[2].isdigit():
            return True
        return int(parts[2]) != BCRYPT_ROUNDS


def hash_password(password: str) -> str:
    """Hash a password."""
    return PasswordHasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password."""
    return PasswordHasher.verify(plain_password, hashed_password)


# Compared against when no actor matches, so lookups of unknown emails cost
# the same bcrypt work as wrong passwords
DUMMY_PASSWORD_HASH = bcrypt.hashpw(b"unused-dummy-password", bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")
