"""
Print what the stores currently hold

    python -m hospital_data summary [--verbose] [--data-dir DIR] [--mode editor|packaged]
"""
import argparse
import sys
from typing import List, Optional

from hospital_data.core.config import RUNTIME_MODES, configure_logging
from hospital_data.services.registry import StoreRegistry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hospital_data", description="Inspect the hospital data files")
    parser.add_argument("command", choices=["summary"], help="what to print")
    parser.add_argument("--data-dir", help="directory holding the JSON files (default: configured)")
    parser.add_argument("--mode", choices=RUNTIME_MODES, help="path resolution mode when --data-dir is not given")
    parser.add_argument("-v", "--verbose", action="store_true", help="list every record")
    parser.add_argument("--log-level", default=None, help="logging level (default: HOSPITAL_LOG_LEVEL or INFO)")
    return parser


def summary(registry: StoreRegistry, verbose: bool = False) -> List[str]:
    """
    Lines describing the content of every store
    """
    lines = [f"Base path: {registry.base_dir}"]

    patients = registry.patients.get_all()
    lines.append(f"Patients: {len(patients)}")
    if verbose:
        for p in patients:
            lines.append(f"  {p.id} - {p.first_name} {p.last_name} ({p.birth_year}) "
                         f"pathology={p.pathology} side={p.neglected_side} follow-up={p.follow_up}")

    supervisors = registry.supervisors.get_all()
    lines.append(f"Supervisors: {len(supervisors)}")
    if verbose:
        for s in supervisors:
            lines.append(f"  {s.id} - {s.first_name} {s.last_name} ({s.role})")

    sessions = registry.sessions.get_all()
    lines.append(f"Sessions: {len(sessions)}")
    if verbose:
        for s in sessions:
            started = s.started_at.isoformat() if s.started_at else "-"
            lines.append(f"  {s.patient_id} @ {started} env={s.environment_id} "
                         f"duration={s.duration}s score={s.score}")

    environments = registry.environments.get_all()
    lines.append(f"Environments: {len(environments)}")
    if verbose:
        for e in environments:
            lines.append(f"  {e.id} - {e.name} positions={e.positions} difficulties={e.difficulties}")

    return lines


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.data_dir:
        registry = StoreRegistry(args.data_dir)
    else:
        registry = StoreRegistry.from_config(args.mode)

    for line in summary(registry, verbose=args.verbose):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
