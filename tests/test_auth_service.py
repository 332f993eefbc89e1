import pytest

from services import auth_service as svc
from services.api_client import ApiError, RequestOptions
from services.auth_service import AuthType, LoginStatus


def test_login_descriptor(recorder):
    svc.login("admin", "secret", "1234", "abc-uuid")

    d = recorder.last
    assert d.method == "POST"
    assert d.url == "/auth/login"
    assert d.body == {
        "username": "admin",
        "password": "secret",
        "code": "1234",
        "uuid": "abc-uuid",
        "clientType": "web",
    }
    assert d.options == RequestOptions(is_token=False, repeat_submit=False)
    assert d.timeout is None


def test_register_adds_client_type(recorder):
    svc.register({"username": "neo", "password": "matrix"})

    d = recorder.last
    assert (d.method, d.url) == ("POST", "/auth/register")
    assert d.body == {"username": "neo", "password": "matrix", "clientType": "web"}
    assert d.options.is_token is False
    assert d.options.repeat_submit is True


def test_register_overrides_caller_client_type(recorder):
    fields = {"username": "neo", "clientType": "app"}
    svc.register(fields)

    assert recorder.last.body["clientType"] == "web"
    assert fields["clientType"] == "app"


def test_change_password(recorder):
    svc.change_password("old", "new")

    d = recorder.last
    assert (d.method, d.url) == ("PUT", "/auth/password")
    assert d.body == {"oldPassword": "old", "newPassword": "new"}
    assert d.options is None


def test_get_code_img(recorder):
    svc.get_code_img()

    d = recorder.last
    assert (d.method, d.url) == ("GET", "/code")
    assert d.options.is_token is False
    assert d.timeout == 20000
    assert d.body is None


@pytest.mark.parametrize("fn,method,path", [
    (svc.refresh_token, "POST", "/auth/refresh"),
    (svc.get_info, "GET", "/system/user/getInfo"),
    (svc.logout, "DELETE", "/auth/logout"),
    (svc.get_current_user_info, "GET", "/auth/info"),
    (svc.validate_token, "GET", "/auth/validate"),
])
def test_no_arg_calls_use_default_options(recorder, fn, method, path):
    fn()
    fn()

    first, second = recorder.calls
    assert (first.method, first.url) == (method, path)
    assert first.body is None
    assert first.options is None
    assert first.timeout is None
    assert first == second


def test_sms_login(recorder):
    svc.sms_login("13800138000", "123456")

    d = recorder.last
    assert (d.method, d.url) == ("POST", "/auth/login/sms")
    assert d.body == {"mobile": "13800138000", "code": "123456", "clientType": "web"}
    assert d.options == RequestOptions(is_token=False, repeat_submit=False)


def test_send_sms_code(recorder):
    svc.send_sms_code("13800138000")

    d = recorder.last
    assert (d.method, d.url) == ("POST", "/auth/sms/send")
    assert d.params == {"mobile": "13800138000", "clientType": "web"}
    assert d.body is None
    assert d.options.is_token is False


def test_result_is_returned_unchanged(recorder):
    recorder.response = {"code": 200, "data": {"access_token": "t"}}
    assert svc.refresh_token() is recorder.response


def test_errors_propagate_unchanged(recorder):
    err = ApiError(423, {"code": 423, "msg": "locked"})
    recorder.error = err

    with pytest.raises(ApiError) as exc:
        svc.login("a", "b", "c", "d")
    assert exc.value is err


def test_constants():
    assert AuthType.WEB == "web"
    assert [m.value for m in AuthType] == ["web"]
    assert LoginStatus.SUCCESS == 200
    assert LoginStatus.UNAUTHORIZED == 401
    assert LoginStatus.FORBIDDEN == 403
    assert LoginStatus.LOCKED == 423
    assert LoginStatus.SERVER_ERROR == 500
