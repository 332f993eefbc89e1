from enum import Enum, IntEnum

from services.api_client import api, RequestOptions

NO_TOKEN = RequestOptions(is_token=False)
NO_TOKEN_NO_REPEAT_CHECK = RequestOptions(is_token=False, repeat_submit=False)
CAPTCHA_TIMEOUT_MS = 20000


class AuthType(str, Enum):
    WEB = "web"


class LoginStatus(IntEnum):
    SUCCESS = 200
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    LOCKED = 423
    SERVER_ERROR = 500


def login(username: str, password: str, code: str, uuid: str):
    return api("POST", "/auth/login", options=NO_TOKEN_NO_REPEAT_CHECK, json={
        "username": username,
        "password": password,
        "code": code,
        "uuid": uuid,
        "clientType": AuthType.WEB.value,
    })

def register(data: dict):
    # clientType is always forced to web, even if the caller sent one
    return api("POST", "/auth/register", options=NO_TOKEN, json={**data, "clientType": AuthType.WEB.value})

def sms_login(mobile: str, code: str):
    return api("POST", "/auth/login/sms", options=NO_TOKEN_NO_REPEAT_CHECK, json={
        "mobile": mobile,
        "code": code,
        "clientType": AuthType.WEB.value,
    })

def send_sms_code(mobile: str):
    return api("POST", "/auth/sms/send", options=NO_TOKEN, params={"mobile": mobile, "clientType": AuthType.WEB.value})

def refresh_token():
    return api("POST", "/auth/refresh")

def get_info():
    return api("GET", "/system/user/getInfo")

def logout():
    return api("DELETE", "/auth/logout")

def get_current_user_info():
    return api("GET", "/auth/info")

def validate_token():
    return api("GET", "/auth/validate")

def change_password(old_password: str, new_password: str):
    return api("PUT", "/auth/password", json={"oldPassword": old_password, "newPassword": new_password})

def get_code_img():
    """Captcha image: {captchaEnabled, uuid, img} with img as base64."""
    return api("GET", "/code", options=NO_TOKEN, timeout=CAPTCHA_TIMEOUT_MS)
