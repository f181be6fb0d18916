# tests/test_cli.py
from cli.cli import create_parser, main
from leaddesk.services.admin_auth import ADMIN_COOKIE_NAME, issue_token, verify_token


def test_parser_knows_commands():
    parser = create_parser()

    assert parser.parse_args(["verify-token", "abc"]).token == "abc"
    assert parser.parse_args(["issue-token", "--cookie"]).cookie is True


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "leaddesk-cli" in capsys.readouterr().out


def test_issue_token_prints_a_valid_token(capsys):
    assert main(["issue-token"]) == 0

    token = capsys.readouterr().out.strip().splitlines()[-1]
    assert verify_token(token) is True


def test_issue_token_as_cookie(capsys):
    assert main(["issue-token", "--cookie"]) == 0

    assert capsys.readouterr().out.strip().startswith(f"{ADMIN_COOKIE_NAME}=")


def test_verify_token(capsys):
    assert main(["verify-token", issue_token()]) == 0
    assert main(["verify-token", "garbage"]) == 1


def test_init_db_and_status(capsys):
    assert main(["init-db"]) == 0
    assert main(["db-status"]) == 0

    out = capsys.readouterr().out
    assert "Schema is up to date" in out
    assert "Total leads: 0" in out
