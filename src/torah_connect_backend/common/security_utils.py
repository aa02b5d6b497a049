'''
Password hashing, kept apart from services/security.py so the user services
can hash passwords without importing the JWT dependency chain.
'''
from passlib.context import CryptContext


class HashedPassword:
    pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    @classmethod
    def verify(cls, plain_password: str, hashed_password: str) -> bool:
        return cls.pwd_context.verify(plain_password, hashed_password)

    @classmethod
    def get_hash(cls, password: str) -> str:
        return cls.pwd_context.hash(password)

    @classmethod
    def needs_rehash(cls, hashed_password: str) -> bool:
        """True for hashes made with outdated bcrypt rounds; login upgrades them."""
        return cls.pwd_context.needs_update(hashed_password)
