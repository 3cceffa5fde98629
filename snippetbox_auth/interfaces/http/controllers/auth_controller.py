# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint, Response, g, jsonify, request
from pydantic import ValidationError

from snippetbox_auth.application.services.credentials import CredentialService
from snippetbox_auth.application.services.session_binder import SessionBinder
from snippetbox_auth.domain.users.exceptions import (
    InvalidCredentialsError,
    NoSuchRecordError,
)
from snippetbox_auth.interfaces.http.dto.auth import (
    AccountDTO,
    LoginRequestDTO,
    OkDTO,
    PasswordUpdateRequestDTO,
    SignupRequestDTO,
)
from snippetbox_auth.shared.errors import ValidationError as FormError
from snippetbox_auth.shared.errors.validation import (
    ValidationErrorType,
    raise_validation_error,
)
from snippetbox_auth.shared.logging import logger, set_user_id
from snippetbox_auth.shared.middleware.session import (
    current_session,
    current_user_id,
    replace_session,
    require_authentication,
)

SIGNUP_FLASH = "Your signup was successful. Please log in."
LOGOUT_FLASH = "You've been logged out successfully!"
PASSWORD_UPDATED_FLASH = "Your password has been updated!"


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


class AuthController:
    def __init__(
        self,
        *,
        credentials: CredentialService,
        sessions: SessionBinder,
    ) -> None:
        self._credentials = credentials
        self._sessions = sessions

    def ping(self) -> Response:
        return Response("OK", mimetype="text/plain")

    def signup(self) -> tuple[Response, int]:
        try:
            dto = SignupRequestDTO.model_validate(_payload())
        except ValidationError as exc:
            raise_validation_error(exc)

        user_id = self._credentials.register(dto.name, dto.email, dto.password)
        replace_session(self._sessions.put_flash(current_session(), SIGNUP_FLASH))
        logger.info(f"auth.signup: ok user_id={user_id}")
        return jsonify(OkDTO().model_dump()), 201

    def login_form(self) -> tuple[Response, int]:
        flash = self._sessions.pop_flash(current_session())
        return jsonify(OkDTO(flash=flash).model_dump()), 200

    def login(self) -> tuple[Response, int]:
        try:
            dto = LoginRequestDTO.model_validate(_payload())
        except ValidationError as exc:
            raise_validation_error(exc)

        user_id = self._credentials.authenticate(dto.email, dto.password)
        replace_session(self._sessions.set_authenticated(current_session(), user_id))
        g.user_id = user_id
        set_user_id(user_id)
        logger.info(f"auth.login: ok user_id={user_id}")
        return jsonify(OkDTO().model_dump()), 200

    @require_authentication
    def logout(self) -> tuple[Response, int]:
        user_id = current_user_id()
        session = self._sessions.clear_authenticated(current_session())
        replace_session(self._sessions.put_flash(session, LOGOUT_FLASH))
        logger.info(f"auth.logout: ok user_id={user_id}")
        return jsonify(OkDTO().model_dump()), 200

    @require_authentication
    def account_view(self) -> tuple[Response, int]:
        user_id = current_user_id()
        try:
            user = self._credentials.get(user_id)
        except NoSuchRecordError:
            return jsonify({"error": "unauthorized"}), 401

        payload = AccountDTO(
            id=user.id,
            name=user.name,
            email=user.email,
            created=user.created.isoformat(),
            flash=self._sessions.pop_flash(current_session()),
        )
        return jsonify(payload.model_dump()), 200

    @require_authentication
    def password_update(self) -> tuple[Response, int]:
        try:
            dto = PasswordUpdateRequestDTO.model_validate(_payload())
        except ValidationError as exc:
            raise_validation_error(exc)

        user_id = current_user_id()
        try:
            self._credentials.rotate_password(
                user_id, dto.current_password, dto.new_password
            )
        except InvalidCredentialsError:
            raise FormError(
                context={
                    "fields": {"current_password": "Current password is incorrect"},
                    "errors": [
                        {
                            "field": "current_password",
                            "type": ValidationErrorType.INCORRECT.value,
                        }
                    ],
                }
            ) from None

        replace_session(
            self._sessions.put_flash(current_session(), PASSWORD_UPDATED_FLASH)
        )
        logger.info(f"auth.password_update: ok user_id={user_id}")
        return jsonify(OkDTO().model_dump()), 200

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("auth", __name__)
        bp.add_url_rule("/ping", view_func=self.ping, methods=["GET"])
        bp.add_url_rule("/user/signup", view_func=self.signup, methods=["POST"])
        bp.add_url_rule("/user/login", view_func=self.login_form, methods=["GET"])
        bp.add_url_rule("/user/login", view_func=self.login, methods=["POST"])
        bp.add_url_rule("/user/logout", view_func=self.logout, methods=["POST"])
        bp.add_url_rule("/account/view", view_func=self.account_view, methods=["GET"])
        bp.add_url_rule(
            "/account/password/update",
            view_func=self.password_update,
            methods=["POST"],
        )
        return bp


__all__ = ["AuthController"]
