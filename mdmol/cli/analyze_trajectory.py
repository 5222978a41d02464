#!/usr/bin/env python
"""
Batch topology and backbone angle extraction for raw trajectory datasets.

Each input is a ``.npz`` archive with the arrays:
    positions        (F, N, 3) float  atom positions per frame
    elements         (N,)      int or str  atomic numbers or element symbols
    labels           (N,)      str   atom names (CA, N, C, O, ...)
    residue_names    (R,)      str   optional
    residue_ids      (R,)      int   optional
    residue_ranges   (R, 2)    int   optional, [begin, end) atom range per residue
    boxes            (F, 3, 3) float optional simulation boxes

Usage:
    python -m mdmol.cli.analyze_trajectory --input_dir /data/md --output_dir /data/md-features
    python -m mdmol.cli.analyze_trajectory --input_dir /data/md --output_dir /data/md-features --num_workers 4
    python -m mdmol.cli.analyze_trajectory --input_dir /data/md --output_dir /data/md-features --resume
"""

import argparse
import logging
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import torch
from tqdm import tqdm

from mdmol.errors import MdmolError
from mdmol.structure import MoleculeDynamic, MoleculeStructure, Residue, Trajectory
from mdmol.topology import bonds_to_array, build_topology
from mdmol.trajectory import compute_backbone_angles_trajectory, init_backbone_angles_trajectory

logger = logging.getLogger(__name__)


def load_dataset(file_path: Path) -> MoleculeDynamic:
    """Build a molecule and a fully loaded trajectory from a ``.npz`` archive."""
    with np.load(file_path, allow_pickle=False) as data:
        frames = np.asarray(data["positions"], dtype=np.float32)
        if frames.ndim == 2:
            frames = frames[None]
        boxes = data["boxes"] if "boxes" in data.files else None

        residues: List[Residue] = []
        if "residue_ranges" in data.files:
            ranges = data["residue_ranges"]
            names = data["residue_names"] if "residue_names" in data.files else ["UNK"] * len(ranges)
            ids = data["residue_ids"] if "residue_ids" in data.files else np.arange(1, len(ranges) + 1)
            residues = [
                Residue(name=str(name), id=int(rid), beg_atom_idx=int(beg), end_atom_idx=int(end))
                for name, rid, (beg, end) in zip(names, ids, ranges)
            ]

        elements = data["elements"]
        elements = [str(e) for e in elements] if elements.dtype.kind in "US" else elements
        molecule = MoleculeStructure.from_arrays(
            frames[0], elements, [str(lbl) for lbl in data["labels"]], residues
        )

    return MoleculeDynamic(molecule, Trajectory.from_frames(frames, boxes))


def get_output_path(file_path: Path, input_dir: str, output_dir: str) -> Path:
    """Output path mirroring the input's location under ``input_dir``."""
    try:
        rel_path = file_path.relative_to(input_dir)
        return Path(output_dir) / rel_path.parent / f"{file_path.stem}.pt"
    except ValueError:
        return Path(output_dir) / f"{file_path.stem}.pt"


def process_single_dataset(
    file_path: Path,
    input_dir: str,
    output_dir: str,
    skip_angles: bool = False,
) -> Tuple[str, bool, str]:
    """
    Derive topology and backbone angles for one dataset and save them.

    Returns:
        Tuple of (dataset_id, success, message)
    """
    dataset_id = file_path.stem
    try:
        output_path = get_output_path(file_path, input_dir, output_dir)
        if output_path.exists():
            return (dataset_id, True, "skipped (exists)")

        dynamic = load_dataset(file_path)
        molecule = build_topology(dynamic.molecule)

        save_dict = {
            'bonds': torch.from_numpy(bonds_to_array(molecule.covalent_bonds)),     # [E, 2]
            'chains': [(c.label, c.beg_res_idx, c.end_res_idx) for c in molecule.chains],
            'backbone': torch.tensor(
                [[s.ca_idx, s.n_idx, s.c_idx, s.o_idx] for s in molecule.backbone_segments],
                dtype=torch.long,
            ).reshape(-1, 4),                                                      # [R, 4]
            'num_atoms': molecule.num_atoms,
            'num_residues': molecule.num_residues,
            'num_frames': dynamic.trajectory.num_frames,
            'dataset_id': dataset_id,
            'source_path': str(file_path),
        }

        if not skip_angles:
            angles = init_backbone_angles_trajectory(dynamic)
            compute_backbone_angles_trajectory(angles, dynamic)
            save_dict['backbone_angles'] = torch.from_numpy(
                angles.angle_data[:angles.num_frames].copy()
            )                                                                      # [F, R, 3]

        output_path.parent.mkdir(parents=True, exist_ok=True)
        torch.save(save_dict, output_path)
        return (
            dataset_id, True,
            f"ok ({molecule.num_atoms} atoms, {len(molecule.chains)} chains, "
            f"{dynamic.trajectory.num_frames} frames)",
        )

    except (OSError, KeyError, ValueError, MdmolError) as e:
        return (dataset_id, False, str(e)[:100])


def process_wrapper(args: Tuple) -> Tuple[str, bool, str]:
    """Wrapper for multiprocessing."""
    return process_single_dataset(*args)


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description='Batch topology and backbone angle extraction for trajectory datasets'
    )
    parser.add_argument(
        '--input_dir', type=str, required=True,
        help='Input directory containing .npz trajectory datasets'
    )
    parser.add_argument(
        '--output_dir', type=str, required=True,
        help='Output directory for .pt result files'
    )
    parser.add_argument(
        '--num_workers', type=int, default=1,
        help='Number of parallel workers (default: 1)'
    )
    parser.add_argument(
        '--resume', action='store_true',
        help='Skip already processed datasets'
    )
    parser.add_argument(
        '--limit', type=int, default=None,
        help='Limit number of datasets to process'
    )
    parser.add_argument(
        '--skip_angles', action='store_true',
        help='Only derive topology, no per-frame backbone angles'
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logger.info(f"Scanning {args.input_dir} for .npz datasets...")
    dataset_files = sorted(Path(args.input_dir).rglob("*.npz"))
    logger.info(f"Found {len(dataset_files)} datasets")

    if args.limit:
        dataset_files = dataset_files[:args.limit]
        logger.info(f"Limited to {len(dataset_files)} datasets")

    if args.resume:
        original_count = len(dataset_files)
        dataset_files = [
            f for f in dataset_files
            if not get_output_path(f, args.input_dir, args.output_dir).exists()
        ]
        logger.info(
            f"Resuming: {original_count - len(dataset_files)} already processed, "
            f"{len(dataset_files)} remaining"
        )

    if not dataset_files:
        logger.info("No datasets to process")
        return

    Path(args.output_dir).mkdir(parents=True, exist_ok=True)

    success_count = 0
    fail_count = 0
    failed = []
    start_time = time.time()

    if args.num_workers == 1:
        with tqdm(dataset_files, desc="Processing", unit="dataset") as pbar:
            for file_path in pbar:
                did, success, msg = process_single_dataset(
                    file_path, args.input_dir, args.output_dir, args.skip_angles
                )
                if success:
                    success_count += 1
                    pbar.set_postfix_str(f"{did}: {msg}")
                else:
                    fail_count += 1
                    failed.append((did, msg))
                    pbar.set_postfix_str(f"{did}: FAILED")
    else:
        logger.info(f"Using {args.num_workers} workers")
        tasks = [(f, args.input_dir, args.output_dir, args.skip_angles) for f in dataset_files]

        with ProcessPoolExecutor(max_workers=args.num_workers) as executor:
            futures = {executor.submit(process_wrapper, task): task[0] for task in tasks}
            with tqdm(total=len(futures), desc="Processing", unit="dataset") as pbar:
                for future in as_completed(futures):
                    did, success, msg = future.result()
                    if success:
                        success_count += 1
                    else:
                        fail_count += 1
                        failed.append((did, msg))
                    pbar.update(1)
                    pbar.set_postfix_str(f"ok={success_count}, fail={fail_count}")

    elapsed = time.time() - start_time
    logger.info("=" * 60)
    logger.info(f"Success: {success_count}, Failed: {fail_count}, Time: {elapsed:.1f}s")

    if failed:
        for did, error in failed[:20]:
            logger.info(f"  {did}: {error[:80]}")
        if len(failed) > 20:
            logger.info(f"  ... and {len(failed) - 20} more")
        fail_log = Path(args.output_dir) / "failed_datasets.txt"
        with open(fail_log, 'w') as f:
            for did, error in failed:
                f.write(f"{did}\t{error}\n")
        logger.info(f"Failed datasets saved to: {fail_log}")


if __name__ == '__main__':
    main()
