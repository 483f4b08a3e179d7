import pytest

from corpus_api.schemas import BlobPermission, Container, Error, ErrorCode, UserInfo


@pytest.mark.parametrize("name", ["abc", "my-corpus", "a1-b2-c3", "0" * 63])
def test_valid_container_names(name):
    container = Container.try_parse(name)
    assert container == name
    assert isinstance(container, Container)


@pytest.mark.parametrize(
    "name",
    [None, "", "ab", "0" * 64, "Upper", "double--dash", "-start", "end-", "dot.name", "abc\n"],
)
def test_invalid_container_names(name):
    assert Container.try_parse(name) is None


def test_parse_raises_for_invalid_name():
    with pytest.raises(ValueError):
        Container.parse("not_valid")


def test_permission_sas_string_is_ordered():
    assert BlobPermission.READ.to_sas() == "r"
    assert (BlobPermission.LIST | BlobPermission.READ | BlobPermission.WRITE).to_sas() == "rwl"


def test_error_body_shape():
    error = Error.create(ErrorCode.INVALID_REQUEST, "bad input")
    assert error.model_dump(mode="json") == {"code": "INVALID_REQUEST", "errors": ["bad input"]}
    assert str(error) == "INVALID_REQUEST: bad input"


def test_user_info_prefers_object_id_claim():
    user = UserInfo.from_claims({"sub": "subject", "oid": "object", "tid": "t", "idtyp": "user"})
    assert user.object_id == "object"
    assert user.tenant_id == "t"
    assert user.identity_type == "user"
