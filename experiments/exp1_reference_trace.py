"""
Experiment 1: Reference Trace

Replays the three-station trace the channel was designed against:

    station 1 sends 4 to station 3
    station 2 sends 5 to station 1
    station 3 sends 7 to station 2

and checks the composite signal (-3 1 1 1 1 1 1 -3 -1 -1 3 -1) and the
recovered values (5, 7, 4) over the in-process and TCP transports.
"""

import argparse
import threading
import numpy as np
from typing import Dict, Any
from dataclasses import dataclass

from experiments.base import ExperimentBase, ExperimentConfig
from cdma.message import Message
from cdma.simulation import simulate_round, serve, run_clients
from cdma.transport import listen
from cdma.utils import format_sequence

REFERENCE_MESSAGES = [
    Message(sender=1, destination=3, value=4),
    Message(sender=2, destination=1, value=5),
    Message(sender=3, destination=2, value=7),
]
REFERENCE_COMPOSITE = [-3, 1, 1, 1, 1, 1, 1, -3, -1, -1, 3, -1]
REFERENCE_RECOVERED = {1: 5, 2: 7, 3: 4}


@dataclass
class Exp1Config(ExperimentConfig):
    """Configuration for Experiment 1."""
    experiment_name: str = "exp1_reference_trace"
    use_tcp: bool = True
    host: str = "127.0.0.1"


class ReferenceTraceExperiment(ExperimentBase):
    """Experiment 1: reference trace."""

    def __init__(self, config: Exp1Config):
        super().__init__(config)
        self.config: Exp1Config = config

    def _run_tcp(self, channel_config):
        server = listen(self.config.host, 0)
        channel_config.host = self.config.host
        channel_config.port = server.getsockname()[1]

        outcome = {}

        def run_server():
            try:
                outcome["combined"] = serve(channel_config, server=server)
            except Exception as e:
                outcome["error"] = e

        thread = threading.Thread(target=run_server, name="combiner", daemon=True)
        thread.start()
        try:
            stations = run_clients(REFERENCE_MESSAGES, channel_config)
        finally:
            thread.join()
            server.close()
        if "error" in outcome:
            raise outcome["error"]
        return outcome["combined"].composite, {sid: r.value for sid, r in stations.items()}

    def run(self) -> Dict[str, Any]:
        self.logger.info("Starting Experiment 1: Reference Trace")
        channel_config = self.config.channel_config()

        results = {"transports": {}}

        result = simulate_round(REFERENCE_MESSAGES, channel_config)
        results["transports"]["queue"] = self._check(result.composite, result.recovered())
        for sid in sorted(result.stations):
            self.logger.info("\n" + result.stations[sid].summary())

        if self.config.use_tcp:
            composite, recovered = self._run_tcp(channel_config)
            results["transports"]["tcp"] = self._check(composite, recovered)

        results["passed"] = all(r["passed"] for r in results["transports"].values())

        if self.config.save_figures:
            from analysis.plots import plot_round
            plot_round(
                result,
                output_path=str(self.output_path / "reference_round.png"),
                show=False,
            )

        self.log_summary({k: v for k, v in results.items() if k != "transports"})
        self.save_results(results)
        return results

    def _check(self, composite, recovered) -> Dict[str, Any]:
        composite = np.asarray(composite).tolist()
        self.logger.info(f"Signal: {format_sequence(composite)}")
        self.logger.info(f"Recovered: {recovered}")
        return {
            "composite": composite,
            "recovered": recovered,
            "passed": composite == REFERENCE_COMPOSITE and recovered == REFERENCE_RECOVERED,
        }


def main():
    parser = argparse.ArgumentParser(description="Experiment 1: Reference Trace")
    parser.add_argument("--config", type=str, help="Config YAML path")
    parser.add_argument("--output-dir", type=str, default="results")
    parser.add_argument("--no-tcp", action="store_true", help="Skip the TCP transport")
    parser.add_argument("--no-figures", action="store_true")
    args = parser.parse_args()

    if args.config:
        config = Exp1Config.from_yaml(args.config)
    else:
        config = Exp1Config(
            output_dir=args.output_dir,
            use_tcp=not args.no_tcp,
            save_figures=not args.no_figures,
        )

    experiment = ReferenceTraceExperiment(config)
    results = experiment.run()
    return 0 if results["passed"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
