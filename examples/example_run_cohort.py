import argparse
import json
import logging
from pathlib import Path

import numpy as np

from child_weight.config import build_model_from_config, load_config


def summarize(traj):
    end = traj.final()
    return {
        "model_type": traj.model_type,
        "steps": traj.n_steps,
        "days": float(end["time"]),
        "correct_values": traj.correct_values,
        "final_age": end["age"].tolist(),
        "initial_body_weight": traj.body_weight[:, 0].tolist(),
        "final_body_weight": end["body_weight"].tolist(),
        "final_FFM": end["FFM"].tolist(),
        "final_FM": end["FM"].tolist(),
    }


def main():
    parser = argparse.ArgumentParser(description="Run the child body-weight model for a cohort.")
    parser.add_argument("--config", type=str, required=True, help="Path to cohort YAML")
    parser.add_argument("--days", type=float, default=None, help="Override simulation.days")
    parser.add_argument("--outdir", type=str, default="outputs", help="Output directory")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config_path = Path(args.config)
    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    cfg = load_config(config_path)
    model, days = build_model_from_config(cfg, base_dir=config_path.parent)
    if args.days is not None:
        days = args.days

    traj = model.simulate(days)
    summary = summarize(traj)

    # Save outputs
    np.savetxt(outdir / "time.csv", traj.time, delimiter=",")
    np.save(outdir / "ffm.npy", traj.FFM)
    np.save(outdir / "fm.npy", traj.FM)
    np.save(outdir / "body_weight.npy", traj.body_weight)
    with (outdir / "summary.json").open("w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2)

    print("Simulation finished.")
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
