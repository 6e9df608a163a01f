from click.testing import CliRunner

from passgate.cli import cli
from passgate.client.infrastructure.wallet import LocalWalletSigner


def test_cli_help():
    """Test CLI help command."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "Usage:" in result.output


def test_cli_keygen(tmp_path):
    """Test keygen command."""
    keys_dir = tmp_path / "keys"
    runner = CliRunner()

    result = runner.invoke(cli, ["keygen", "--keys-dir", str(keys_dir)])

    assert result.exit_code == 0
    assert "Keys generated and saved" in result.output
    assert (keys_dir / "server_private.key").exists()
    assert (keys_dir / "server_public.key").exists()


def test_cli_keygen_refuses_overwrite(tmp_path):
    runner = CliRunner()
    runner.invoke(cli, ["keygen", "--keys-dir", str(tmp_path)])

    result = runner.invoke(cli, ["keygen", "--keys-dir", str(tmp_path)])
    assert result.exit_code != 0
    assert "Refusing to overwrite" in result.output

    result = runner.invoke(cli, ["keygen", "--keys-dir", str(tmp_path), "--force"])
    assert result.exit_code == 0


def test_cli_wallet(tmp_path):
    path = tmp_path / "wallet.pem"
    runner = CliRunner()

    created = runner.invoke(cli, ["wallet", str(path)])
    assert created.exit_code == 0
    assert path.exists()

    address = LocalWalletSigner.load(path).address()
    assert address in created.output

    shown = runner.invoke(cli, ["wallet", str(path)])
    assert shown.exit_code == 0
    assert shown.output.strip() == address


def test_cli_serve_help():
    """Test serve command help."""
    runner = CliRunner()
    result = runner.invoke(cli, ["serve", "--help"])
    assert result.exit_code == 0
    assert "Start the authentication server" in result.output


def test_cli_serve_requires_rpc_url(monkeypatch):
    monkeypatch.delenv("PASSGATE_CHAIN_RPC_URL", raising=False)
    runner = CliRunner()
    result = runner.invoke(cli, ["serve"])
    assert result.exit_code != 0
    assert "PASSGATE_CHAIN_RPC_URL" in result.output


def test_cli_login_help():
    runner = CliRunner()
    result = runner.invoke(cli, ["login", "--help"])
    assert result.exit_code == 0
    assert "--wallet" in result.output
