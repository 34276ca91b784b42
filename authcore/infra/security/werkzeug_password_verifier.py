# authcore/infra/security/werkzeug_password_verifier.py
from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from authcore.services._shared.ports.password_verifier import PasswordVerifier


@dataclass(slots=True)
class WerkzeugPasswordVerifier(PasswordVerifier):
    """
    Password hashing via :mod:`werkzeug.security`.

    :param method: Hash method passed to :func:`generate_password_hash`.
    """

    method: str = "scrypt"

    def hash(self, password: str) -> str:
        return generate_password_hash(password, method=self.method)

    def compare(self, password_hash: str, password: str) -> bool:
        if not password_hash:
            return False
        try:
            return check_password_hash(password_hash, password)
        except ValueError:
            # Unknown or corrupt hash format
            return False
