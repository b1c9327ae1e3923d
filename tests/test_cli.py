"""Tests for the CLI module."""

from __future__ import annotations

import io
import json
from contextlib import nullcontext
from typing import TYPE_CHECKING

import pytest
from helpers.fake_github import FakeGitHub

if TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture

from ghfeedback import cli
from ghfeedback.cli import (
    _current_pr,
    _make_remote,
    _mask_value,
    _read_message,
    _session,
    _validate_id,
    ack,
    agree,
    check_env,
    comment_reply,
    detail,
    main,
    review_hide,
    start,
    status,
    summary,
    thread_react,
    thread_resolve,
)
from ghfeedback.config import CONFIG_FILENAME, Config
from ghfeedback.errors import FeedbackError, InvalidInputError, WorkflowViolation
from ghfeedback.gh import GhCliRemote, GhNotAuthenticatedError
from ghfeedback.github_api import HttpRemote
from ghfeedback.models import (
    ActionOutcome,
    FeedbackItem,
    FeedbackSummary,
    ItemDetail,
    ItemKind,
    ItemStatus,
    Location,
    OutcomeKind,
    ReplyResult,
    SummaryItem,
    WorkflowStatus,
)
from ghfeedback.reactions import Reaction

ITEM = FeedbackItem(
    kind=ItemKind.THREAD,
    id=456,
    mutation_handle="PRRC_456",
    owner="alice",
    pr_number=7,
    location=Location(path="src/app.py", line=12),
    thread_id="PRRT_456",
    is_resolved=False,
)
REPLY_URL = "https://github.com/octo/widgets/pull/7#discussion_r900"


def _outcome(**overrides) -> ActionOutcome:
    fields = {
        "kind": OutcomeKind.SUCCESS,
        "action": "agree",
        "item": ITEM,
        "status_before": WorkflowStatus.PENDING,
        "status_after": WorkflowStatus.AGREED,
        "steps": ["reply", "add +1", "resolve thread"],
        "reply": ReplyResult(id=900, url=REPLY_URL),
    }
    fields.update(overrides)
    return ActionOutcome(**fields)


@pytest.fixture
def workflow(mocker: MockerFixture):
    """Replace the workflow session so commands never touch gh.

    The patched ``_session`` is exposed as ``fake.session`` for call assertions.
    """
    fake = mocker.MagicMock()
    fake.session = mocker.patch("ghfeedback.cli._session", side_effect=lambda *_args, **_kwargs: nullcontext(fake))
    return fake


class TestMaskValue:
    def test_sensitive_value_masked(self):
        result = _mask_value("GH_TOKEN", "ghp_abcdefgh")
        assert result.startswith("gh")
        assert result.endswith("gh")
        assert "********" in result

    def test_short_sensitive_value(self):
        assert _mask_value("GITHUB_TOKEN", "abc") == "****"

    def test_normal_value(self):
        assert _mask_value("EDITOR", "vim") == "vim"


class TestValidateId:
    def test_positive(self):
        assert _validate_id(456) == 456

    @pytest.mark.parametrize("item_id", [0, -3])
    def test_non_positive_rejected(self, item_id):
        with pytest.raises(InvalidInputError, match=f'Invalid ID "{item_id}"'):
            _validate_id(item_id)


class TestReadMessage:
    def test_message_flag(self):
        assert _read_message("Fixed in abc123", None) == "Fixed in abc123"

    def test_file_wins_over_message(self, tmp_path: Path):
        path = tmp_path / "reply.md"
        path.write_text("  From file\n", encoding="utf-8")
        assert _read_message("ignored", path) == "From file"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(InvalidInputError, match="Error reading file"):
            _read_message(None, tmp_path / "nope.md")

    def test_piped_stdin(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("from a pipe\n"))
        assert _read_message(None, None) == "from a pipe"

    def test_empty_rejected(self):
        with pytest.raises(InvalidInputError, match="Empty reply message"):
            _read_message("   ", None)

    def test_optional_message_absent(self):
        assert _read_message(None, None, required=False) is None


class TestMakeRemote:
    def test_gh_by_default(self):
        remote = _make_remote(Config())
        assert isinstance(remote, GhCliRemote)
        assert remote.call_log is None

    def test_call_log_enabled(self):
        remote = _make_remote(Config.model_validate({"diagnostics": {"call_log": True}}))
        assert remote.call_log is not None

    def test_http_transport(self):
        assert isinstance(_make_remote(Config(transport="http")), HttpRemote)


class TestCurrentPr:
    def test_branch_without_pr_is_none(self, mocker: MockerFixture):
        mocker.patch("ghfeedback.gh.get_pr_number", side_effect=FeedbackError("No pull request found"))
        assert _current_pr(None) is None

    def test_explicit_pr_must_resolve(self, mocker: MockerFixture):
        mocker.patch("ghfeedback.gh.get_pr_number", side_effect=FeedbackError("No pull request found for 99."))
        with pytest.raises(FeedbackError):
            _current_pr("99")

    def test_explicit_pr(self, mocker: MockerFixture):
        mock = mocker.patch("ghfeedback.gh.get_pr_number", return_value=12)
        assert _current_pr("feature-x") == 12
        mock.assert_called_once_with("feature-x")


class TestActionCommands:
    def test_agree_reports_and_prints_url(self, workflow, capsys):
        workflow.agree.return_value = _outcome()

        agree(456, message="Fixed in abc123")

        workflow.agree.assert_called_once_with(456, "Fixed in abc123", dry_run=False)
        captured = capsys.readouterr()
        assert captured.out.strip() == REPLY_URL
        assert "Found thread #456 by @alice (pending)" in captured.err
        assert "Location: src/app.py:12" in captured.err
        assert "✓ Marked #456 as agreed." in captured.err

    def test_dry_run(self, workflow, capsys):
        workflow.start.return_value = _outcome(
            action="start",
            steps=["add eyes"],
            status_after=WorkflowStatus.IN_PROGRESS,
            reply=None,
            dry_run=True,
        )

        start(456, dry_run=True)

        workflow.start.assert_called_once_with(456, dry_run=True)
        captured = capsys.readouterr()
        assert "Actions: add eyes" in captured.err
        assert "Dry run: no changes made." in captured.err
        assert captured.out == ""

    def test_partial_prints_warning(self, workflow, capsys):
        warning = f"Reply posted ({REPLY_URL}) but updating the status failed: boom"
        workflow.agree.return_value = _outcome(kind=OutcomeKind.PARTIAL, warning=warning)

        agree(456, message="Fixed")

        captured = capsys.readouterr()
        assert f"Warning: {warning}" in captured.err
        assert "✓" not in captured.err

    def test_ack_without_message(self, workflow, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("should not be read"))
        workflow.ack.return_value = _outcome(action="ack", reply=None)

        ack(789)

        workflow.ack.assert_called_once_with(789, None, dry_run=False)

    def test_violation_exits_1(self, workflow, capsys):
        workflow.agree.side_effect = WorkflowViolation("Cannot agree with review #789 - it would hide unresolved feedback.")

        with pytest.raises(SystemExit) as exc_info:
            agree(789, message="done")

        assert exc_info.value.code == 1
        assert "Error: Cannot agree with review #789" in capsys.readouterr().err

    def test_invalid_id_exits_before_workflow(self, workflow, capsys):
        with pytest.raises(SystemExit):
            start(0)
        assert not workflow.start.called
        assert 'Invalid ID "0"' in capsys.readouterr().err


class TestStatusCommand:
    def _status(self, workflow):
        workflow.status.return_value = (
            ITEM,
            ItemStatus(status=WorkflowStatus.AGREED, viewer_reactions=[Reaction.THUMBS_UP], is_done=True),
        )

    def test_human_output(self, workflow, capsys):
        self._status(workflow)
        status(456)
        out = capsys.readouterr().out
        assert "thread #456 (PR #7) by @alice: agreed" in out
        assert "Your reactions: +1" in out

    def test_json_output(self, workflow, capsys):
        self._status(workflow)
        status(456, json_output=True)
        payload = json.loads(capsys.readouterr().out)
        assert payload == {
            "id": 456,
            "kind": "thread",
            "pr": 7,
            "author": "alice",
            "location": "src/app.py:12",
            "status": "agreed",
            "done": True,
            "reactions": ["+1"],
        }


class TestCheckEnv:
    @pytest.fixture(autouse=True)
    def _project(self, tmp_path: Path, monkeypatch):
        (tmp_path / ".git").mkdir()
        monkeypatch.chdir(tmp_path)

    def test_runs_without_error(self, mocker: MockerFixture, capsys):
        mocker.patch("ghfeedback.gh.check_auth", return_value="testuser")
        mocker.patch("ghfeedback.gh.get_repo_info", return_value=("octo", "widgets"))
        check_env()
        out = capsys.readouterr().out
        assert "gh-feedback check-env" in out
        assert "testuser" in out
        assert "octo/widgets" in out
        assert "Config file: none (defaults)" in out

    def test_token_is_masked(self, mocker: MockerFixture, monkeypatch, capsys):
        monkeypatch.setenv("GH_TOKEN", "ghp_supersecretvalue")
        mocker.patch("ghfeedback.gh.check_auth", return_value="testuser")
        mocker.patch("ghfeedback.gh.get_repo_info", return_value=("octo", "widgets"))
        check_env()
        out = capsys.readouterr().out
        assert "GH_TOKEN = gh" in out
        assert "supersecret" not in out

    def test_gh_cli_error_exits_1(self, mocker: MockerFixture, capsys):
        mocker.patch("ghfeedback.gh.check_auth", side_effect=GhNotAuthenticatedError())
        with pytest.raises(SystemExit) as exc_info:
            check_env()
        assert exc_info.value.code == 1
        assert "gh CLI error" in capsys.readouterr().out

    def test_bad_config_exits_1(self, tmp_path: Path, capsys):
        (tmp_path / CONFIG_FILENAME).write_text("{{nope", encoding="utf-8")
        with pytest.raises(SystemExit):
            check_env()
        assert "Configuration error" in capsys.readouterr().out


class TestSession:
    @pytest.fixture
    def remote(self, tmp_path: Path, monkeypatch, mocker: MockerFixture):
        (tmp_path / ".git").mkdir()
        monkeypatch.chdir(tmp_path)
        mocker.patch("ghfeedback.gh.get_repo_info", return_value=("octo", "widgets"))
        fake = FakeGitHub()
        mocker.patch("ghfeedback.cli._make_remote", return_value=fake)
        return fake

    def test_closes_remote(self, remote, mocker: MockerFixture):
        mocker.patch("ghfeedback.gh.get_pr_number", return_value=7)

        with _session(None, None, verbose=False, debug=False) as workflow:
            assert workflow.locator.current_pr == 7
            assert (workflow.owner, workflow.repo) == ("octo", "widgets")
            assert remote.closed is False

        assert remote.closed is True

    def test_closes_remote_on_error(self, remote, mocker: MockerFixture):
        mocker.patch("ghfeedback.gh.get_pr_number", return_value=7)

        with pytest.raises(FeedbackError), _session("octo/widgets", None, verbose=False, debug=False):
            raise FeedbackError("boom")

        assert remote.closed is True

    def test_closes_remote_when_pr_lookup_fails(self, remote, mocker: MockerFixture):
        mocker.patch("ghfeedback.gh.get_pr_number", side_effect=FeedbackError("No pull request found for 99."))

        with pytest.raises(FeedbackError), _session(None, "99", verbose=False, debug=False):
            pass

        assert remote.closed is True

    def test_pr_not_needed(self, remote, mocker: MockerFixture):
        get_pr = mocker.patch("ghfeedback.gh.get_pr_number")

        with _session(None, None, verbose=False, debug=False, need_pr=False) as workflow:
            assert workflow.locator.current_pr is None

        assert not get_pr.called


class TestSummaryCommand:
    @pytest.fixture(autouse=True)
    def _summary(self, workflow, mocker: MockerFixture):
        self.get_pr = mocker.patch("ghfeedback.gh.get_pr_number", return_value=7)
        workflow.summary.return_value = FeedbackSummary(
            pr_number=7,
            pr_url="https://github.com/octo/widgets/pull/7",
            pr_title="Add widgets",
            items=[
                SummaryItem(
                    kind=ItemKind.THREAD,
                    id=456,
                    timestamp="2026-03-01T10:00:01Z",
                    status=WorkflowStatus.PENDING,
                    author="alice",
                    location=Location(path="src/app.py", line=12),
                    body="Rename this",
                ),
            ],
        )

    def test_piped_output_is_tsv(self, workflow, capsys):
        summary(hide_resolved=True)

        assert capsys.readouterr().out == "456\tthread\tpending\talice\tsrc/app.py:12\tRename this\n"
        workflow.summary.assert_called_once_with(7, hide_hidden=False, hide_resolved=True)
        assert workflow.session.call_args.kwargs["need_pr"] is False

    def test_terminal_output_is_text(self, workflow, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdout.isatty", lambda: True)
        summary(pr="feature-x")
        assert "PR #7: Add widgets" in capsys.readouterr().out
        self.get_pr.assert_called_once_with("feature-x")

    def test_porcelain_on_terminal(self, workflow, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdout.isatty", lambda: True)
        summary(porcelain=True)
        assert capsys.readouterr().out.startswith("456\tthread\tpending")

    def test_json(self, workflow, capsys):
        summary(json_output=True)
        payload = json.loads(capsys.readouterr().out)
        assert payload["items"][0]["status"] == "pending"

    def test_empty_tsv_notes_on_stderr(self, workflow, capsys):
        workflow.summary.return_value = FeedbackSummary(pr_number=7, pr_url="u", pr_title="t")
        summary()
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "No feedback found" in captured.err

    def test_no_pr_exits_1(self, workflow, capsys):
        self.get_pr.side_effect = FeedbackError("No pull request found for current branch.")
        with pytest.raises(SystemExit) as exc_info:
            summary()
        assert exc_info.value.code == 1
        assert "No pull request found" in capsys.readouterr().err


class TestDetailCommand:
    def test_text(self, workflow, capsys):
        workflow.detail.return_value = ItemDetail(item=ITEM, status=WorkflowStatus.PENDING)
        detail(456)
        assert "Thread #456 (PR #7) [pending]" in capsys.readouterr().out

    def test_json(self, workflow, capsys):
        workflow.detail.return_value = ItemDetail(item=ITEM, status=WorkflowStatus.PENDING)
        detail(456, json_output=True)
        assert json.loads(capsys.readouterr().out)["item"]["thread_id"] == "PRRT_456"


class TestPerKindCommands:
    def test_thread_react_skips_pr_lookup(self, workflow, capsys):
        workflow.react.return_value = _outcome(action="react", steps=["add +1"], reply=None)

        thread_react(456, "👍")

        workflow.react.assert_called_once_with(ItemKind.THREAD, 456, "👍", remove=False, dry_run=False)
        assert workflow.session.call_args.kwargs["need_pr"] is False
        assert "Added reaction on thread #456." in capsys.readouterr().err

    def test_review_hide_resolves_pr(self, workflow):
        workflow.hide.return_value = _outcome(action="hide", steps=["hide (SPAM)"], reply=None)

        review_hide(789, reason="spam", pr="12")

        workflow.hide.assert_called_once_with(ItemKind.REVIEW, 789, "spam", dry_run=False)
        assert workflow.session.call_args.args == (None, "12")
        assert workflow.session.call_args.kwargs["need_pr"] is True

    def test_comment_reply_prints_url(self, workflow, capsys):
        workflow.reply.return_value = _outcome(action="reply", steps=["reply"])

        comment_reply(321, message="Thanks")

        workflow.reply.assert_called_once_with(ItemKind.COMMENT, 321, "Thanks", dry_run=False)
        assert capsys.readouterr().out.strip() == REPLY_URL

    def test_nothing_to_do(self, workflow, capsys):
        workflow.set_thread_resolved.return_value = _outcome(action="resolve", steps=[], reply=None)

        thread_resolve(456)

        err = capsys.readouterr().err
        assert "Nothing to do: thread #456 is already in that state." in err
        assert "✓" not in err

    def test_unknown_reaction_exits_1(self, workflow, capsys):
        workflow.react.side_effect = InvalidInputError('Unsupported reaction "wave".')
        with pytest.raises(SystemExit) as exc_info:
            thread_react(456, "wave")
        assert exc_info.value.code == 1
        assert 'Unsupported reaction "wave"' in capsys.readouterr().err

    def test_invalid_id_exits_before_session(self, workflow):
        with pytest.raises(SystemExit):
            comment_reply(0, message="hi")
        assert not workflow.session.called


class TestMain:
    def test_keyboard_interrupt_exits_130(self, mocker: MockerFixture, capsys):
        mocker.patch.object(cli, "app", side_effect=KeyboardInterrupt)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 130
        assert "Interrupted" in capsys.readouterr().err
