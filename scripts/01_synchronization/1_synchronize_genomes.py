#!/usr/bin/env python3
"""
Multi-genome Synchronization Batch Script

Scans the VCF file of every configured genome, builds the reference insertion
aggregate, synchronizes every genome allele onto the meta-genome axis and
writes the translation tables and scan statistics as TSV.

Input:
    - YAML project configuration (see mgsync.config)
    - One VCF/BCF per genome (several genomes may share a file)

Output:
    - {OUTPUT_DIR}/synchronized_offsets.tsv - Boundaries of every translation table
    - {OUTPUT_DIR}/meta_chromosomes.tsv - Reference and meta-genome lengths
    - {OUTPUT_DIR}/failures.tsv - Tables that failed to synchronize
    - {OUTPUT_DIR}/file_statistics.tsv, sample_statistics.tsv - Variant counts
    - {OUTPUT_DIR}/synchronization.log

Usage:
    # Synchronize every genome of a project
    python 1_synchronize_genomes.py --config project.yaml --jobs 8

    # List configured genomes
    python 1_synchronize_genomes.py --config project.yaml --list

    # Print meta-genome positions of reference positions for all genomes
    python 1_synchronize_genomes.py --config project.yaml --translate chr1:1000,2000
"""

import os
import sys
import argparse
import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime

# Path configuration
_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.dirname(_SCRIPT_DIR))

from mgsync.config import get_nested, load_config, validate_config
from mgsync.project import project_from_config
from mgsync.reports import translate_positions, write_reports
from mgsync.synchronizer import synchronize_project
from mgsync.vcf_records import scan_vcf

logger = logging.getLogger(__name__)


def setup_logging(output_dir):
    """Log to the console and to {output_dir}/synchronization.log"""
    os.makedirs(output_dir, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(os.path.join(output_dir, "synchronization.log")),
        ],
    )


def parse_translate_argument(value):
    """Parse 'chr1:100,200' into ('chr1', [100, 200])"""
    chromosome, _, positions = value.rpartition(":")
    if not chromosome or not positions:
        raise argparse.ArgumentTypeError(f"Expected CHROM:POS[,POS...], got '{value}'")
    try:
        return chromosome, [int(p) for p in positions.split(",")]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Positions must be integers: '{positions}'")


def group_genomes_by_vcf(project):
    """Map each VCF path to the genomes configured to be read from it."""
    groups = defaultdict(list)
    for genome in project.genomes.values():
        if genome.vcf:
            groups[genome.vcf].append(genome)
        else:
            logger.warning(f"Genome {genome.name} has no VCF; it keeps reference coordinates")
    return groups


def collect_offsets(project, jobs):
    """
    Scan every VCF file of the project.

    Files are scanned in parallel; each file is read sequentially and only
    feeds the genomes configured for it. A file that fails to scan fails its
    genomes only. Returns (file_statistics, sample_statistics, failed_genomes)
    where failed_genomes maps genome name -> error message.
    """
    groups = group_genomes_by_vcf(project)
    file_statistics = {}
    sample_statistics = {}
    failed_genomes = {}

    with ThreadPoolExecutor(max_workers=jobs) as executor:
        future_to_vcf = {
            executor.submit(scan_vcf, project, vcf, genomes=genomes): vcf
            for vcf, genomes in groups.items()
        }
        completed = 0
        for future in as_completed(future_to_vcf):
            vcf = future_to_vcf[future]
            completed += 1
            try:
                collector = future.result()
            except (ValueError, OSError) as e:
                # MalformedRecordError is a ValueError, as are pysam parse errors
                logger.error(f"[{completed}/{len(groups)}] {vcf}: {e}")
                for genome in groups[vcf]:
                    failed_genomes[genome.name] = f"{vcf}: {e}"
                continue
            file_statistics[vcf] = collector.file_statistics
            sample_statistics.update(collector.sample_statistics)
            logger.info(f"[{completed}/{len(groups)}] {vcf}: {collector.file_statistics.records} records")

    return file_statistics, sample_statistics, failed_genomes


def main():
    parser = argparse.ArgumentParser(
        description="Synchronize genomes onto a shared meta-genome coordinate axis"
    )
    parser.add_argument("--config", required=True, help="YAML project configuration")
    parser.add_argument("--jobs", type=int, default=None,
                        help="Parallel jobs (default: resources.workers or 4)")
    parser.add_argument("--output-dir", help="Output directory (default: project.output_dir)")
    parser.add_argument("--list", action="store_true", help="List configured genomes")
    parser.add_argument("--keep-raw", action="store_true",
                        help="Keep raw offset lists in memory after synchronization")
    parser.add_argument("--translate", type=parse_translate_argument, metavar="CHROM:POS[,POS...]",
                        help="Print meta-genome positions of genome positions for every genome")
    args = parser.parse_args()

    config = load_config(args.config)
    is_valid, errors = validate_config(config, check_files=not args.list)
    if not is_valid:
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        sys.exit(1)

    project = project_from_config(config)

    if args.list:
        print(f"Reference: {project.reference_name} ({len(project.chromosomes)} chromosomes)")
        for i, genome in enumerate(project.genomes.values(), 1):
            print(f"{i:3d}. {genome.name} (sample {genome.sample}, ploidy {genome.ploidy}, {genome.vcf})")
        return

    output_dir = args.output_dir or get_nested(config, "project.output_dir", "mgsync_output")
    jobs = args.jobs or int(get_nested(config, "resources.workers", 4))
    setup_logging(output_dir)

    logger.info("=" * 60)
    logger.info("Multi-genome Synchronization")
    logger.info(f"Reference: {project.reference_name}")
    logger.info(f"Genomes: {len(project.genomes)}, chromosomes: {len(project.chromosomes)}")
    logger.info(f"Output: {output_dir}")
    logger.info(f"Start: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info("=" * 60)

    file_statistics, sample_statistics, failed_genomes = collect_offsets(project, jobs)
    if failed_genomes:
        logger.error(
            f"Offset collection failed for {len(failed_genomes)} genome(s): "
            f"{', '.join(sorted(failed_genomes))}; synchronizing the others"
        )
    logger.info(f"Reference aggregate: {len(project.reference_offsets)} insertion loci")

    report = synchronize_project(
        project, max_workers=jobs, keep_raw=args.keep_raw, collection_errors=failed_genomes
    )
    write_reports(project, output_dir, file_statistics, sample_statistics)

    if args.translate:
        chromosome, positions = args.translate
        print(translate_positions(project, chromosome, positions).to_string(index=False))

    logger.info("=" * 60)
    logger.info(f"Synchronized tables: {report.succeeded}, failed: {len(report.failures)}")
    logger.info(f"End: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info("=" * 60)

    if not report.ok:
        sys.exit(2)


if __name__ == "__main__":
    main()
