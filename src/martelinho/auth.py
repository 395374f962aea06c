"""Email/password authentication against the `users` collection.

`AuthClient` keeps the session of the current user and notifies subscribers
whenever it changes (sign-in, sign-up, sign-out). Passwords are stored as
Werkzeug password hashes; the user id doubles as the tenant id of the
user's service records.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError
from werkzeug.security import check_password_hash, generate_password_hash

from martelinho.models import Session, UserProfile

log = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

AuthListener = Callable[[str, Session | None], None]


class AuthError(RuntimeError):
    """Sign-in or sign-up failed; the message is meant for the user."""


def validate_sign_up(email: str, password: str, full_name: str, company_name: str) -> None:
    """Check the registration form.

    Raises:
        AuthError: describing the first problem found.
    """
    if not email or not password or not full_name or not company_name:
        raise AuthError("Por favor, preencha todos os campos obrigatórios")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres")
    if "@" not in email or "." not in email:
        raise AuthError("Por favor, informe um email válido")


class AuthClient:
    """Session holder backed by a MongoDB users collection.

    Args:
        users: PyMongo collection of user documents.
    """

    def __init__(self, users: Collection[dict[str, Any]]) -> None:
        self._users = users
        self._session: Session | None = None
        self._listeners: list[AuthListener] = []

    def get_session(self) -> Session | None:
        return self._session

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Subscribe to session changes.

        The listener receives the event name (``SIGNED_IN``, ``SIGNED_OUT``)
        and the new session.

        Returns:
            A callable that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_session(self, event: str, session: Session | None) -> None:
        self._session = session
        for listener in list(self._listeners):
            listener(event, session)

    def sign_in(self, email: str, password: str) -> Session:
        """Authenticate with email and password.

        Raises:
            AuthError: on unknown email, wrong password or storage failure.
        """
        try:
            doc = self._users.find_one({"email": email.strip().lower()})
        except PyMongoError as exc:
            log.error("Sign-in lookup failed: %s", exc)
            raise AuthError("Erro ao fazer login. Tente novamente mais tarde.") from exc

        if doc is None or not check_password_hash(doc.get("password_hash", ""), password):
            log.info("Failed sign-in for %s", email)
            raise AuthError("Email ou senha inválidos")

        session = Session(user=_profile(doc), signed_in_at=datetime.now(timezone.utc))
        self._set_session("SIGNED_IN", session)
        log.info("User %s signed in", session.user.id)
        return session

    def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        company_name: str,
        phone: str = "",
    ) -> Session:
        """Create an account and sign it in.

        Raises:
            AuthError: on invalid input, an already registered email or a
                storage failure.
        """
        email = email.strip().lower()
        validate_sign_up(email, password, full_name.strip(), company_name.strip())

        now = datetime.now(timezone.utc)
        user_id = str(uuid.uuid4())
        doc = {
            "_id": user_id,
            "email": email,
            "password_hash": generate_password_hash(password),
            "full_name": full_name.strip(),
            "company_name": company_name.strip(),
            "phone": phone.strip(),
            "created_at": now,
            "updated_at": now,
        }
        try:
            if self._users.find_one({"email": email}) is not None:
                raise DuplicateKeyError(f"email {email} already registered")
            self._users.insert_one(doc)
        except DuplicateKeyError as exc:
            raise AuthError(
                "Este email já está registrado. Use outro email ou tente fazer login."
            ) from exc
        except PyMongoError as exc:
            log.error("Sign-up failed: %s", exc)
            raise AuthError("Erro ao criar conta. Tente novamente mais tarde.") from exc

        session = Session(user=_profile(doc), signed_in_at=now)
        self._set_session("SIGNED_IN", session)
        log.info("User %s registered", user_id)
        return session

    def sign_out(self) -> None:
        if self._session is not None:
            log.info("User %s signed out", self._session.user.id)
        self._set_session("SIGNED_OUT", None)


def _profile(doc: dict[str, Any]) -> UserProfile:
    return UserProfile.model_validate({**doc, "id": str(doc.get("id", doc.get("_id")))})
