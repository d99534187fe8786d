from sorrel.core.envelope import ok, err


def test_ok_envelope_shape():
    out = ok(command="x", data={"a": 1})
    assert out["ok"] is True
    assert out["command"] == "x"
    assert out["data"] == {"a": 1}
    assert out["artifacts"] == []


def test_err_envelope_shape():
    out = err(command="x", error_type="PARSE_ERROR", message="m")
    assert out["ok"] is False
    assert out["error"]["type"] == "PARSE_ERROR"
    assert out["error"]["details"] == {}
