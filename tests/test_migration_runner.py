"""
End-to-end tests of the multi-tenant migration against in-memory fakes

Run with: pytest tests/test_migration_runner.py -v
"""

import pytest

from datastore.firebase_connection import MigrationContext
from services.migration_runner import main, run_migration
from services.migration_verifier import verify_migration


def _seed_scenario(fake_db, fake_auth):
    fake_db.seed("users", {
        "u1": {"email": "ana@mas.test", "roles": ["admin"], "department": "Ops"},
        "u2": {"email": "bo@mas.test", "roles": ["manager", "sales"]},
        "u3": {"email": "cy@mas.test"},
    })
    fake_db.seed("projects", {"p1": {"name": "Website"}, "p2": {"name": "Mobile app"}})
    fake_db.seed("tasks", {"t1": {"title": "Kickoff"}})
    for uid in ("u1", "u2", "u3"):
        fake_auth.add_account(uid, email=f"{uid}@mas.test")


def _snapshot_counts(fake_db):
    return {name: len(docs) for name, docs in fake_db.data.items()}


def test_end_to_end_scenario(ctx, fake_db, fake_auth):
    _seed_scenario(fake_db, fake_auth)

    stats = run_migration(ctx)

    assert stats.organizations.model_dump() == {"created": 1, "existing": 0}
    assert stats.users.model_dump() == {"migrated": 3, "failed": 0}
    assert stats.projects.migrated == 2
    assert stats.tasks.migrated == 1
    assert stats.invoices.migrated == 0
    assert stats.tickets.migrated == 0
    assert stats.errors == []

    org_id = stats.organization_id
    assert list(fake_db.docs("organizations")) == [org_id]
    assert fake_db.docs("users")["u3"]["organizations"][org_id]["roles"] == ["employee"]
    assert len(fake_db.docs("userOrganizations")) == 3
    assert all(p["organizationId"] == org_id for p in fake_db.docs("projects").values())
    assert fake_db.docs("tasks")["t1"]["organizationId"] == org_id

    assert stats.claims.updated == 3
    assert fake_auth.accounts["u2"].custom_claims == {
        "organizationId": org_id,
        "organizationRoles": ["manager", "sales"],
    }
    assert fake_auth.accounts["u3"].custom_claims["organizationRoles"] == ["employee"]


def test_second_run_is_idempotent(ctx, fake_db, fake_auth):
    _seed_scenario(fake_db, fake_auth)
    first = run_migration(ctx)
    counts = _snapshot_counts(fake_db)

    second = run_migration(ctx)

    assert second.organization_id == first.organization_id
    assert second.organizations.model_dump() == {"created": 0, "existing": 1}
    assert second.users.migrated == 0
    assert second.projects.migrated == 0
    assert second.tasks.migrated == 0
    assert _snapshot_counts(fake_db) == counts


def test_empty_organization_ids_are_repaired(ctx, fake_db, fake_auth):
    fake_db.seed("projects", {"p1": {"organizationId": ""}, "p2": {}})

    stats = run_migration(ctx)
    second = run_migration(ctx)

    org_id = stats.organization_id
    assert stats.projects.migrated == 2
    assert second.projects.migrated == 0
    assert fake_db.docs("projects")["p1"]["organizationId"] == org_id
    assert verify_migration(ctx, org_id).ok


def test_failure_in_one_collection_does_not_block_the_next(ctx, fake_db, fake_auth):
    projects = {f"p{n}": {"name": f"Project {n}"} for n in range(9)}
    projects["p-bad"] = "corrupted"
    fake_db.seed("projects", projects)
    fake_db.seed("tasks", {"t1": {}, "t2": {}})

    stats = run_migration(ctx)

    assert stats.projects.model_dump() == {"migrated": 9, "failed": 1}
    assert stats.tasks.model_dump() == {"migrated": 2, "failed": 0}
    assert len(stats.errors) == 1
    assert stats.errors[0].startswith("Project p-bad: ")


def test_claims_only_touched_after_data_writes(ctx, fake_db, fake_auth, mocker):
    """Every batch is committed before the first claim is set"""
    _seed_scenario(fake_db, fake_auth)
    commits_at_claim_time = []
    original = fake_auth.set_custom_user_claims

    def record(uid, claims):
        commits_at_claim_time.append(len(fake_db.commit_sizes))
        original(uid, claims)

    mocker.patch.object(fake_auth, "set_custom_user_claims", side_effect=record)

    run_migration(ctx)

    total_commits = len(fake_db.commit_sizes)
    assert commits_at_claim_time == [total_commits] * 3


def test_commit_failure_is_fatal(ctx, fake_db):
    fake_db.seed("projects", {"p1": {}})
    fake_db.fail_commits = True

    with pytest.raises(RuntimeError):
        run_migration(ctx)


class TestMain:
    @pytest.fixture
    def config_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("USE_DOTENV", "false")
        monkeypatch.delenv("MAS_SERVICE_ACCOUNT_PATH", raising=False)
        monkeypatch.delenv("MAS_DEFAULT_ORG_SLUG", raising=False)
        credential = tmp_path / "firebase-service-account.json"
        config = tmp_path / "migration.yaml"
        config.write_text(f"firebase:\n  service_account_path: {credential}\n")
        return config, credential

    def _factory(self, fake_db, fake_auth):
        return lambda settings: MigrationContext(settings=settings, db=fake_db, auth=fake_auth)

    def test_missing_credentials_exit_before_any_call(self, config_file, capsys, mocker):
        config, _ = config_file
        factory = mocker.Mock()

        code = main(["--config", str(config)], context_factory=factory)

        assert code == 1
        factory.assert_not_called()
        assert "Service account file not found" in capsys.readouterr().err

    def test_successful_run_exits_zero(self, config_file, fake_db, fake_auth):
        config, credential = config_file
        credential.write_text("{}")
        _seed_scenario(fake_db, fake_auth)

        code = main(["--config", str(config)], context_factory=self._factory(fake_db, fake_auth))

        assert code == 0
        assert len(fake_db.docs("organizations")) == 1
        assert len(fake_db.docs("userOrganizations")) == 3

    def test_uncaught_error_exits_one(self, config_file, fake_db, fake_auth):
        config, credential = config_file
        credential.write_text("{}")
        fake_db.seed("tasks", {"t1": {}})
        fake_db.fail_commits = True

        code = main(["--config", str(config)], context_factory=self._factory(fake_db, fake_auth))

        assert code == 1

    def test_context_factory_error_exits_one(self, config_file):
        config, credential = config_file
        credential.write_text("{}")

        def broken(settings):
            raise ValueError("bad credentials")

        assert main(["--config", str(config)], context_factory=broken) == 1

    def test_verify_only(self, config_file, fake_db, fake_auth):
        config, credential = config_file
        credential.write_text("{}")
        factory = self._factory(fake_db, fake_auth)

        # Nothing migrated yet: no default organization
        assert main(["--config", str(config), "--verify-only"], context_factory=factory) == 1

        _seed_scenario(fake_db, fake_auth)
        assert main(["--config", str(config)], context_factory=factory) == 0
        assert main(["--config", str(config), "--verify-only"], context_factory=factory) == 0

    def test_verify_only_makes_no_writes(self, config_file, fake_db, fake_auth):
        config, credential = config_file
        credential.write_text("{}")
        fake_db.seed("organizations", {"org1": {"slug": "default-org"}})
        fake_db.seed("projects", {"p1": {}})

        code = main(["--config", str(config), "--verify-only"], context_factory=self._factory(fake_db, fake_auth))

        assert code == 1
        assert fake_db.commit_sizes == []
        assert "organizationId" not in fake_db.docs("projects")["p1"]
