from __future__ import annotations

from typer.testing import CliRunner

from rowmapper import main
from rowmapper.domain.record import Item

runner = CliRunner()


class _StubModel:
    instances: list["_StubModel"] = []

    def __init__(self, table: str, primary_key: str = "id", auto_save=None) -> None:
        self.table = table
        self.primary_key = primary_key
        self.executed: list[tuple[str, dict]] = []
        _StubModel.instances.append(self)

    def query(self, sql):
        model = self

        class _Statement:
            def execute(self, params):
                model.executed.append((sql, dict(params)))
                return 1

        return _Statement()

    def is_known(self, name: str) -> bool:
        return name in {"username", "email"}

    def get_row(self, row_id):
        if row_id != "5":
            return None
        return Item(self, {"id": 5, "username": "ada"}, table=self.table, primary_key=self.primary_key)


def test_info_prints_configuration() -> None:
    result = runner.invoke(main.app, ["info"])
    assert result.exit_code == 0
    assert "DB=" in result.stdout


def test_update_saves_all_assignments_in_one_statement(monkeypatch) -> None:
    _StubModel.instances.clear()
    monkeypatch.setattr(main, "PostgresModel", _StubModel)

    result = runner.invoke(main.app, ["update", "users", "5", "username=grace", "email=g@h.io"])

    assert result.exit_code == 0, result.stdout
    executed = _StubModel.instances[0].executed
    assert len(executed) == 1
    assert executed[0][1] == {"username": "grace", "email": "g@h.io", "id": 5}


def test_update_rejects_malformed_assignment(monkeypatch) -> None:
    monkeypatch.setattr(main, "PostgresModel", _StubModel)
    result = runner.invoke(main.app, ["update", "users", "5", "username"])
    assert result.exit_code != 0


def test_show_missing_row_exits_with_error(monkeypatch) -> None:
    monkeypatch.setattr(main, "PostgresModel", _StubModel)
    result = runner.invoke(main.app, ["show", "users", "6"])
    assert result.exit_code == 1


def test_delete_issues_scoped_delete(monkeypatch) -> None:
    _StubModel.instances.clear()
    monkeypatch.setattr(main, "PostgresModel", _StubModel)

    result = runner.invoke(main.app, ["delete", "users", "5"])

    assert result.exit_code == 0
    assert _StubModel.instances[0].executed == [("DELETE FROM users WHERE id = :id", {"id": 5})]
