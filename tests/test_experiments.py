import json

from experiments.base import all_rounds
from experiments.exp1_reference_trace import Exp1Config, ReferenceTraceExperiment
from experiments.exp2_exhaustive_sweep import Exp2Config, ExhaustiveSweepExperiment
from experiments.exp3_code_families import (
    Exp3Config,
    CodeFamilyExperiment,
    recover_per_recipient,
)
from cdma.codes import WALSH_CODES, CodeTable
from cdma.message import Message


def _shared_code_table():
    # station 3 reuses station 1's row; station 2 stays orthogonal to both
    codes = WALSH_CODES.copy()
    codes[3] = codes[1]
    return CodeTable(codes, validate=False)


def test_all_rounds():
    rounds = all_rounds()
    assert len(rounds) == 512 * 6
    assert all(len({m.destination for m in r}) == 3 for r in rounds)


def test_exp1_reference_trace(tmp_path):
    config = Exp1Config(output_dir=str(tmp_path), run_id="test", save_figures=True)
    results = ReferenceTraceExperiment(config).run()
    assert results["passed"]
    assert results["transports"]["tcp"]["recovered"] == {1: 5, 2: 7, 3: 4}

    out = tmp_path / "exp1_reference_trace" / "test"
    assert (out / "config.yaml").exists()
    assert (out / "reference_round.png").exists()
    assert json.loads((out / "results.json").read_text())["passed"]


def test_exp2_direct_sweep(tmp_path):
    config = Exp2Config(output_dir=str(tmp_path), run_id="test")
    results = ExhaustiveSweepExperiment(config).run()
    assert results["num_rounds"] == 3072
    assert results["lossless"]
    assert results["bit_error_rate"] == 0.0


def test_exp2_queue_subset(tmp_path):
    config = Exp2Config(output_dir=str(tmp_path), run_id="test", transport="queue", max_rounds=20)
    results = ExhaustiveSweepExperiment(config).run()
    assert results["num_rounds"] == 20
    assert results["lossless"]


def test_exp3_code_families(tmp_path):
    config = Exp3Config(
        output_dir=str(tmp_path),
        run_id="test",
        num_random_tables=1,
        save_figures=False,
    )
    results = CodeFamilyExperiment(config).run()
    tables = results["tables"]
    assert tables["walsh"]["strict"]["accuracy"] == 1.0
    assert tables["hadamard"]["legacy"]["accuracy"] == 1.0
    assert tables["walsh"]["strict"]["num_faults"] == 0
    assert "random_42" in tables
    assert tables["walsh"]["per_value"][4]["recall"] == 1.0
    assert tables["hadamard"]["codes"] != tables["walsh"]["codes"]


def test_recover_per_recipient_keeps_clean_recipients():
    messages = [
        Message(sender=1, destination=3, value=4),
        Message(sender=2, destination=1, value=5),
        Message(sender=3, destination=2, value=7),
    ]
    # only station 1 is addressed through station 2's unshared code
    assert recover_per_recipient(messages, _shared_code_table(), strict=True) == {
        1: 5, 2: None, 3: None,
    }


def test_exp3_fault_rate_counts_faulting_recipients_only(tmp_path):
    config = Exp3Config(output_dir=str(tmp_path), run_id="test", save_figures=False)
    experiment = CodeFamilyExperiment(config)
    predictions, ground_truth = experiment._sweep(_shared_code_table(), strict=True)

    assert len(predictions) == 3 * 3072
    faults = sum(p is None for p in predictions)
    correct = sum(p == g for p, g in zip(predictions, ground_truth))
    assert faults == 2 * 3072
    assert correct == 3072
