"""
core/i18n.py -- Localized API messages.

The message tables are plain data. MessageCatalog wraps them with locale
negotiation, and a Translator is the per-request lookup bound to one locale.
The catalog is built once in the app lifespan and stored on app.state, so
nothing here holds module-level mutable state.

Usage:
    catalog = MessageCatalog(default_locale="zh-CN")
    locale = catalog.negotiate(request.cookies.get(LOCALE_COOKIE))
    _ = catalog.translator(locale)
    _("login_success")

Layer rule: no imports from api/, web/ or auth/.
"""

from __future__ import annotations

from collections.abc import Mapping

# Cookie written by the SPA's i18next language detector.
LOCALE_COOKIE = "i18nextLng"

MESSAGES: dict[str, dict[str, str]] = {
    "zh-CN": {
        "hello": "你好，这是来自 API 的消息！",
        "user_not_found": "用户不存在",
        "not_found": "资源不存在",
        "user_deleted": "用户已删除",
        "name_min_length": "名称至少需要 2 个字符",
        "invalid_email": "请提供有效的电子邮件地址",
        "password_min_length": "密码至少需要 6 个字符",
        "password_max_length": "密码不能超过 72 个字节",
        "validation_failed": "请求参数无效",
        "user_created": "用户创建成功",
        "user_updated": "用户更新成功",
        "login_success": "登录成功",
        "login_failed": "登录失败，邮箱或密码错误",
        "logout_success": "已退出登录",
        "account_disabled": "账户已禁用，请联系管理员",
        "admin_registration_success": "管理员账户注册成功",
        "registration_failed": "注册失败",
        "registration_disabled": "暂不支持公开注册，请使用管理员密钥注册",
        "account_activated": "账户已激活",
        "account_deactivated": "账户已禁用",
        "unauthorized": "未授权操作",
        "admin_required": "需要管理员权限",
        "email_exists": "邮箱已存在",
        "email_in_use": "邮箱已被其他用户使用",
        "last_admin": "无法删除最后一个管理员",
        "not_your_account": "您只能更新自己的账户信息",
        "too_many_requests": "请求过于频繁，请稍后再试",
        "internal_error": "服务器内部错误",
    },
    "en": {
        "hello": "Hello, this is a message from the API!",
        "user_not_found": "User not found",
        "not_found": "Resource not found",
        "user_deleted": "User deleted",
        "name_min_length": "Name must be at least 2 characters",
        "invalid_email": "Please provide a valid email address",
        "password_min_length": "Password must be at least 6 characters",
        "password_max_length": "Password must be at most 72 bytes",
        "validation_failed": "Invalid request parameters",
        "user_created": "User created successfully",
        "user_updated": "User updated successfully",
        "login_success": "Login successful",
        "login_failed": "Login failed, incorrect email or password",
        "logout_success": "Logged out",
        "account_disabled": "Account is disabled, please contact administrator",
        "admin_registration_success": "Admin account registered successfully",
        "registration_failed": "Registration failed",
        "registration_disabled": "Public registration is disabled. Please use an admin key to register.",
        "account_activated": "Account activated",
        "account_deactivated": "Account deactivated",
        "unauthorized": "Unauthorized operation",
        "admin_required": "Admin privileges required",
        "email_exists": "Email already exists",
        "email_in_use": "Email already in use by another user",
        "last_admin": "Cannot delete the last admin user",
        "not_your_account": "You can only update your own account information",
        "too_many_requests": "Too many requests, please try again later",
        "internal_error": "An unexpected error occurred",
    },
}


class Translator:
    """Message lookup bound to a single locale.

    Missing keys fall back to the catalog's default locale, then to the key
    itself, so a typo shows up in the response instead of raising a KeyError.
    """

    def __init__(self, locale: str, table: Mapping[str, str], fallback: Mapping[str, str]) -> None:
        self.locale = locale
        self._table = table
        self._fallback = fallback

    def __call__(self, key: str) -> str:
        return self._table.get(key) or self._fallback.get(key) or key


class MessageCatalog:
    def __init__(self, tables: Mapping[str, Mapping[str, str]] = MESSAGES, default_locale: str = "zh-CN") -> None:
        if default_locale not in tables:
            raise ValueError(f"Default locale {default_locale!r} has no message table.")
        self._tables = tables
        self.default_locale = default_locale

    @property
    def locales(self) -> list[str]:
        return list(self._tables)

    def negotiate(self, requested: str | None) -> str:
        """Return the requested locale if supported, otherwise the default."""
        if requested and requested in self._tables:
            return requested
        return self.default_locale

    def translator(self, locale: str | None) -> Translator:
        locale = self.negotiate(locale)
        return Translator(locale, self._tables[locale], self._tables[self.default_locale])
