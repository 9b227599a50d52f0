"""Test cases for typed mutation and child creation."""

import pytest

from treeconf import (
    Config,
    DuplicateNameError,
    Kind,
    NestingDepthError,
    Setting,
    SettingNotFoundError,
    TypeMismatchError,
    Value,
    parse,
    serialize,
)
from treeconf.setting import DEFAULT_MAX_DEPTH


def test_set_values_in_place(server_config: Config):
    """Test typed setters on matching kinds.

    Given a parsed tree
    When setting new values of the stored kinds
    Then lookups return the new values and kinds are unchanged
    """
    server_config.lookup("server.port").set_int(9090)
    server_config.lookup("server.ratio").set_float(0.5)
    server_config.lookup("server.debug").set_bool(True)
    server_config.lookup("server.host").set_string("example.org")
    server_config.lookup("limits.[0]").set(11)

    assert server_config.lookup_int("server.port") == 9090
    assert server_config.lookup_float("server.ratio") == 0.5
    assert server_config.lookup_bool("server.debug") is True
    assert server_config.lookup_string("server.host") == "example.org"
    assert server_config.get("limits") == [11, 20, 30]
    assert server_config.lookup("server.port").kind is Kind.INT


def test_setters_reject_other_kinds(server_config: Config):
    """Test kind strictness of setters.

    Given settings of each scalar kind
    When calling a setter for another kind
    Then a type mismatch is raised and the value is untouched
    """
    host = server_config.lookup("server.host")
    with pytest.raises(TypeMismatchError) as exc_info:
        host.set_int(1)
    assert exc_info.value.path == "server.host"
    assert host.get() == "localhost"

    with pytest.raises(TypeMismatchError):
        server_config.lookup("server.port").set_float(1.0)
    with pytest.raises(TypeMismatchError):
        server_config.lookup("server.ratio").set_int(1)
    with pytest.raises(TypeMismatchError):
        server_config.lookup("server.debug").set_string("yes")
    with pytest.raises(TypeMismatchError):
        server_config.lookup("server").set_int(1)


def test_setters_reject_wrong_python_types():
    root = Setting.root()
    port = root.add("port", Kind.INT)
    ratio = root.add("ratio", Kind.FLOAT)

    with pytest.raises(TypeMismatchError):
        port.set_int("8080")
    with pytest.raises(TypeMismatchError):
        port.set_int(True)
    with pytest.raises(TypeMismatchError):
        ratio.set_float(1)
    with pytest.raises(ValueError):
        port.set_int(2**63)
    with pytest.raises(ValueError):
        ratio.set_float(float("inf"))


def test_add_setting_under_group(config: Config):
    """Test creating settings through the façade.

    Given an empty config
    When adding groups and scalars under existing groups
    Then they hold default values and resolve by path
    """
    config.add_setting("", "server", Kind.GROUP)
    port = config.add_setting("server", "port", Kind.INT)
    host = config.add_setting("server", "host", "string")
    port.set_int(8080)

    assert config.lookup_int("server.port") == 8080
    assert host.get() == ""
    assert host.parent is config.lookup("server")
    assert port.source_line == 0
    assert config.lookup_float(config.add_setting("", "ratio", Kind.FLOAT).path) == 0.0
    assert config.lookup_bool(config.add_setting("", "debug", Kind.BOOL).path) is False


def test_add_setting_twice_is_duplicate(config: Config):
    """Test duplicate rejection.

    Given a group named root
    When adding the same integer setting to it twice
    Then the second call fails with a duplicate name
    """
    config.read_string("root = {};")

    config.add_setting("root", "x", Kind.INT)
    with pytest.raises(DuplicateNameError) as exc_info:
        config.add_setting("root", "x", Kind.INT)

    assert exc_info.value.path == "root"
    assert exc_info.value.name == "x"


def test_add_setting_parent_errors(server_config: Config):
    with pytest.raises(SettingNotFoundError):
        server_config.add_setting("nowhere", "x", Kind.INT)
    with pytest.raises(TypeMismatchError):
        server_config.add_setting("server.port", "x", Kind.INT)
    with pytest.raises(TypeMismatchError):
        server_config.add_setting("server.listeners", "x", Kind.INT)


@pytest.mark.parametrize("name", ["", "1abc", "has space", "true", "a.b"])
def test_add_rejects_invalid_names(name: str):
    with pytest.raises(ValueError):
        Setting.root().add(name, Kind.INT)


def test_add_elements_to_list_and_array():
    """Test positional children.

    Given a list and an array
    When appending elements
    Then lists take any kind and arrays keep one scalar kind
    """
    root = Setting.root()
    items = root.add("items", Kind.LIST)
    values = root.add("values", Kind.ARRAY)

    items.add(None, Kind.STRING)
    items.add(None, Kind.GROUP).add("x", Kind.INT)
    values.add(None, Kind.FLOAT).set_float(1.5)
    values.add(None, Kind.FLOAT)

    assert [child.kind for child in items] == [Kind.STRING, Kind.GROUP]
    assert root.lookup_int("items.[1].x") == 0
    assert root.lookup_float("values.[0]") == 1.5

    with pytest.raises(TypeMismatchError):
        values.add(None, Kind.INT)
    with pytest.raises(TypeMismatchError):
        values.add(None, Kind.GROUP)
    with pytest.raises(ValueError):
        items.add("named", Kind.INT)
    with pytest.raises(TypeMismatchError):
        root.lookup("values.[0]").add(None, Kind.INT)


def test_value_defaults():
    root = Setting.root()
    defaults = {kind: root.add(kind.value, kind) for kind in Kind}

    assert defaults[Kind.INT].get() == 0
    assert defaults[Kind.FLOAT].get() == 0.0
    assert defaults[Kind.BOOL].get() is False
    assert defaults[Kind.STRING].get() == ""
    assert len(defaults[Kind.GROUP]) == 0
    assert defaults[Kind.LIST].children == []
    with pytest.raises(TypeMismatchError):
        defaults[Kind.ARRAY].get()


def test_value_conversions_check_kind():
    """Test the value model's explicit conversions.

    Given an integer value and a float value
    When converting each to Python types
    Then only the matching conversion succeeds
    """
    count = Value(Kind.INT, 3)
    ratio = Value.default(Kind.FLOAT)

    assert count.as_int() == 3
    assert ratio.as_float() == 0.0
    assert Value(Kind.STRING, "x").as_str() == "x"
    assert Value(Kind.BOOL, True).as_bool() is True
    with pytest.raises(TypeMismatchError):
        count.as_float()
    with pytest.raises(TypeMismatchError):
        ratio.as_int()

    count.assign(Kind.INT, 4)
    assert count == Value(Kind.INT, 4)
    with pytest.raises(TypeMismatchError):
        count.assign(Kind.FLOAT, 4.0)


def test_typed_getters(server_config: Config):
    assert server_config.lookup("server.port").get_int() == 8080
    assert server_config.lookup("server.ratio").get_float() == 0.75
    assert server_config.lookup("server.debug").get_bool() is False
    assert server_config.lookup("name").get_string() == "edge-proxy"
    with pytest.raises(TypeMismatchError) as exc_info:
        server_config.lookup("server.port").get_string()
    assert exc_info.value.path == "server.port"


def test_name_and_value_are_read_only(server_config: Config):
    """Test that node identity cannot be rebound.

    Given a parsed setting
    When assigning its name, value, kind or payload directly
    Then the assignment fails and the tree stays resolvable under the old name
    """
    port = server_config.lookup("server.port")

    with pytest.raises(AttributeError):
        port.name = "other"
    with pytest.raises(AttributeError):
        port.value = Value(Kind.STRING, "x")
    with pytest.raises(AttributeError):
        port.value.data = "x"
    with pytest.raises(AttributeError):
        port.value.kind = Kind.STRING

    assert server_config.lookup_int("server.port") == 8080
    assert port.path == "server.port"


def test_add_with_initial_value():
    root = Setting.root()

    port = root.add("port", Kind.INT, 8080)
    flags = root.add("flags", Kind.ARRAY)
    flags.add(None, Kind.BOOL, False)

    assert root.lookup_int("port") == 8080
    assert flags.to_python() == [False]
    with pytest.raises(TypeMismatchError) as exc_info:
        root.add("host", Kind.STRING, 1)
    assert exc_info.value.path == ""
    assert "host" not in root
    with pytest.raises(TypeMismatchError):
        root.add("sub", Kind.GROUP, {})
    assert port.parent is root


def test_settings_attach_only_through_add():
    """Test how nodes join a tree.

    Given a root group
    When constructing a setting with a parent keyword, or adding one through add
    Then the keyword is rejected and only added children are registered with their parent
    """
    root = Setting.root()

    with pytest.raises(TypeError):
        Setting(Kind.INT, name="x", parent=root)  # type: ignore[call-arg]

    detached = Setting(Kind.INT, name="x")
    child = root.add("x", Kind.INT)

    assert detached.is_root
    assert detached.parent is None
    assert child.parent is root
    assert root.child("x") is child
    assert child.index == 0


def test_add_enforces_nesting_depth():
    """Test the depth limit for programmatically built trees.

    Given a chain of groups built with add
    When nesting past the maximum depth
    Then the add is refused, and a chain at the limit still writes and reads back
    """
    root = Setting.root()
    node = root
    with pytest.raises(NestingDepthError) as exc_info:
        for _ in range(250):
            node = node.add("b", Kind.GROUP)

    assert node.depth == DEFAULT_MAX_DEPTH
    assert exc_info.value.max_depth == DEFAULT_MAX_DEPTH
    assert exc_info.value.path == node.path
    assert parse(serialize(root)) == root

    shallow = Config(max_depth=2)
    shallow.add_setting("", "a", Kind.GROUP)
    shallow.add_setting("a", "b", Kind.LIST)
    shallow.add_setting("a", "c", Kind.INT)
    with pytest.raises(NestingDepthError):
        shallow.lookup("a.b").add(None, Kind.GROUP, max_depth=shallow.max_depth)
    with pytest.raises(NestingDepthError):
        Config.from_dict({"a": {"b": {"c": {}}}}, max_depth=2)
