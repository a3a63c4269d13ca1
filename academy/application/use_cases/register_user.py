from ...domain.entities import User

class IUserRepository:
    def get_by_email(self, email: str) -> User | None: ...
    def create(self, email: str, password_hash: str, role: str = "student") -> User: ...

class IPasswordHasher:
    def hash(self, plain: str) -> str: ...

MIN_PASSWORD_LENGTH = 8

class RegisterUser:
    """Creates an email/password account together with its UserProfile."""

    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, email: str, password: str) -> User:
        if "@" not in email:
            raise ValueError("Invalid email")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if self.repo.get_by_email(email):
            raise ValueError("Email already registered")
        pwd_hash = self.hasher.hash(password)
        return self.repo.create(email, pwd_hash)
