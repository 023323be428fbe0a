#!/usr/bin/env python3
"""
Constellation analysis CLI.

Usage:
    python scripts/analyze.py --input audio.wav
    python scripts/analyze.py --input ~/datasets/fma_small --pattern "*.mp3" --output results.json
    python scripts/analyze.py --input audio.wav --clip-length 10 --snr 5 --strategy fixed
    python scripts/analyze.py --input quiet.wav --min-db -90 --max-db -20
"""

import argparse
import json
from dataclasses import replace
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

DEFAULT_CONFIG = Path(__file__).parent.parent / "config" / "pipeline.yaml"


def build_config(args):
    from constellation.config import PipelineConfig, load_config

    config = load_config(args.config) if args.config else PipelineConfig()
    overrides = {}
    if args.fft_size is not None:
        overrides["fft_size"] = args.fft_size
    if args.hop is not None:
        overrides["hop"] = args.hop
    if args.min_db is not None:
        overrides["min_db"] = args.min_db
    if args.max_db is not None:
        overrides["max_db"] = args.max_db
    if overrides:
        config = replace(config, spectrogram=replace(config.spectrogram, **overrides))
    if args.strategy is not None:
        config = replace(config, peaks=replace(config.peaks, strategy=args.strategy))
    return config


def analyze_file(path: Path, config, clip_length=None, snr=None, seed=42, envelope_buckets=1000) -> dict:
    from constellation import analyze, load_signal
    from constellation.audio import cut_signal, inject_noise

    signal = load_signal(path)
    if clip_length:
        signal = cut_signal(signal, clip_length, seed=seed)
    if snr is not None:
        signal = inject_noise(signal, snr, seed=seed)

    result = analyze(signal, config)
    summary = result.summary()
    summary["file"] = str(path)
    summary["peaks"] = [p.to_dict() for p in result.peaks]
    summary["pairs"] = [p.to_dict() for p in result.pairs]
    summary["physical_peaks"] = result.physical_peaks()
    summary["physical_pairs"] = result.physical_pairs()
    summary["envelope"] = result.envelope(envelope_buckets).tolist()
    summary["hashes"] = [[int(h), int(t)] for h, t in result.fingerprints]
    return summary


def main():
    parser = argparse.ArgumentParser(description='Constellation - Audio Fingerprint Analysis')
    parser.add_argument('--input', '-i', type=str, required=True,
                        help='Audio file or folder of audio files')
    parser.add_argument('--pattern', type=str, default='*.wav',
                        help='Glob pattern used when --input is a folder')
    parser.add_argument('--config', '-c', type=str,
                        default=str(DEFAULT_CONFIG) if DEFAULT_CONFIG.exists() else None,
                        help='Pipeline YAML config (default: config/pipeline.yaml)')
    parser.add_argument('--fft-size', type=int, default=None,
                        help='FFT size, a power of two')
    parser.add_argument('--hop', type=int, default=None,
                        help='Hop size in samples (default: fft-size / 4)')
    parser.add_argument('--min-db', type=float, default=None,
                        help='Decibel floor')
    parser.add_argument('--max-db', type=float, default=None,
                        help='Decibel ceiling (about 60 for full-scale audio)')
    parser.add_argument('--strategy', choices=['fixed', 'adaptive'], default=None,
                        help='Peak extraction strategy')
    parser.add_argument('--clip-length', type=float, default=None,
                        help='Clip length in seconds (for testing with shorter clips)')
    parser.add_argument('--snr', type=float, default=None,
                        help='SNR in dB for noise injection (for testing robustness)')
    parser.add_argument('--envelope-buckets', type=int, default=1000,
                        help='Resolution of the waveform overview')
    parser.add_argument('--output', '-o', type=str, default=None,
                        help='Write the JSON summary here instead of stdout')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Log per-stage timings')

    args = parser.parse_args()

    import logging
    from tqdm import tqdm
    from constellation.log import log_detail, log_section, setup_logging

    log = setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        print(f"Error: Input not found: {input_path}")
        sys.exit(1)

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Error: Invalid configuration: {e}")
        sys.exit(1)

    if input_path.is_dir():
        audio_files = sorted(input_path.rglob(args.pattern))
    else:
        audio_files = [input_path]

    log_section("🎵 Constellation Analysis")
    log_detail("Files", len(audio_files))
    log_detail("FFT size", config.spectrogram.fft_size)
    log_detail("Hop", config.spectrogram.hop_size)
    log_detail("dB range", f"{config.spectrogram.min_db} .. {config.spectrogram.max_db}")
    log_detail("Strategy", config.peaks.strategy)

    results = []
    failures = 0
    for f in tqdm(audio_files, desc="Analyzing", disable=len(audio_files) < 2):
        try:
            results.append(analyze_file(f, config, args.clip_length, args.snr,
                                        envelope_buckets=args.envelope_buckets))
        except (OSError, RuntimeError, ValueError) as e:
            failures += 1
            log.error(f"Error {f.name}: {e}")

    payload = json.dumps(results if input_path.is_dir() else (results[0] if results else None), indent=2)
    if args.output:
        Path(args.output).write_text(payload)
        print(f"✓ Saved {len(results)} analyses to {args.output}")
    else:
        print(payload)

    if failures:
        sys.exit(1)


if __name__ == '__main__':
    main()
