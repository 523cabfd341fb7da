"""
Tests for the deposit-vault command line tool.
"""

from pathlib import Path

import pytest
from solders.pubkey import Pubkey

from deposit_vault.cli import main
from deposit_vault.config import CONFIG_ENV_VAR
from deposit_vault.program import find_vault_address


SCENARIO_DIR = Path(__file__).parents[2] / "scenarios"


@pytest.fixture(autouse=True)
def no_config_env(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestEncodeDecode:

    def test_encode_deposit(self, capsys):
        assert main(["encode", "deposit", "50_000_000"]) == 0
        assert capsys.readouterr().out.strip() == "0080f0fa0200000000"

    def test_encode_out_of_range(self, capsys):
        assert main(["encode", "withdraw", str(2**64)]) == 1
        assert "error" in capsys.readouterr().out

    def test_encode_bad_amount(self):
        with pytest.raises(SystemExit):
            main(["encode", "deposit", "lots"])

    def test_decode(self, capsys):
        assert main(["decode", "010100000000000000"]) == 0
        assert capsys.readouterr().out.strip() == "Withdraw amount=1"

    def test_decode_unknown_variant(self, capsys):
        assert main(["decode", "020000000000000000"]) == 1
        assert capsys.readouterr().out.startswith("DecodeError")

    def test_decode_not_hex(self, capsys):
        assert main(["decode", "zz"]) == 1
        assert "not hex" in capsys.readouterr().out


class TestDerive:

    def test_derive(self, capsys, program_id):
        depositor = Pubkey.new_unique()
        address, bump = find_vault_address(program_id, depositor)

        assert main(["derive", str(depositor)]) == 0
        out = capsys.readouterr().out
        assert f"vault: {address}" in out
        assert f"bump:  {bump}" in out

    def test_derive_with_program_id(self, capsys):
        depositor, program_id = Pubkey.new_unique(), Pubkey.new_unique()
        address, _ = find_vault_address(program_id, depositor)

        assert main(["derive", str(depositor), "--program-id", str(program_id)]) == 0
        assert f"vault: {address}" in capsys.readouterr().out

    def test_derive_missing_config(self, capsys, tmp_path):
        assert main(["derive", str(Pubkey.new_unique()), "--config", str(tmp_path / "x.yaml")]) == 1
        assert "config error" in capsys.readouterr().out


class TestRun:

    def test_bundled_scenarios(self, capsys):
        files = [str(p) for p in sorted(SCENARIO_DIR.glob("*.vault"))]
        assert main(["run", *files]) == 0

        out = capsys.readouterr().out
        assert "FAIL" not in out
        assert "all scenarios passed" in out

    def test_verbose_prints_logs(self, capsys):
        assert main(["run", "-v", str(SCENARIO_DIR / "deposit_and_withdraw.vault")]) == 0
        assert "Program log: Deposit successful: 50000000 lamports" in capsys.readouterr().out

    def test_failing_scenario(self, capsys, tmp_path):
        path = tmp_path / "bad.vault"
        path.write_text("account alice 100_000_000\nwithdraw alice 5\n")

        assert main(["run", str(path)]) == 1
        out = capsys.readouterr().out
        assert "FAIL line 2: withdraw alice 5 (expected ok, got InsufficientFunds)" in out
        assert "1 failure(s)" in out

    def test_parse_error(self, capsys, tmp_path):
        path = tmp_path / "broken.vault"
        path.write_text("account alice\n")

        assert main(["run", str(path)]) == 1
        assert "parse error at line 1" in capsys.readouterr().out

    def test_invalid_scenario(self, capsys, tmp_path):
        path = tmp_path / "ghost.vault"
        path.write_text("deposit ghost 5\n")

        assert main(["run", str(path)]) == 1
        assert "unknown account 'ghost'" in capsys.readouterr().out

    @pytest.mark.parametrize("source", [
        "account alice 100_000_000\ndeposit alice 18446744073709551616\n",
        "account alice 100_000_000\nvault alice balance 18446744073709551616\n",
    ])
    def test_amount_out_of_range(self, capsys, tmp_path, source):
        path = tmp_path / "big.vault"
        path.write_text(source)

        assert main(["run", str(path)]) == 1
        out = capsys.readouterr().out
        assert "line 2: " in out
        assert "does not fit in u64" in out

    def test_missing_file(self, capsys, tmp_path):
        assert main(["run", str(tmp_path / "none.vault")]) == 1
        assert "file not found" in capsys.readouterr().out
