# !!!
# TO RUN THE SERVER: uvicorn app:app --host 0.0.0.0 --port 8000
# !!!

from __future__ import annotations

from typing import Dict

import numpy as np
from fastapi import FastAPI, HTTPException

from constellation import (
    Signal,
    analyze as run_analysis,
    build_spectrogram,
    compute_spectrum,
    extract_peaks,
    generate_pairs,
    pair_with_anchor,
)
from constellation.log import log_detail, log_section, setup_logging
from constellation.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    PairsRequest,
    PairsResponse,
    PeaksRequest,
    PeaksResponse,
    SpectrogramRequest,
    SpectrogramResponse,
    SpectrumRequest,
    SpectrumResponse,
)

# -----------------------------
# App Initialization
# -----------------------------

log = setup_logging()

log_section("🎵 Constellation API Server")

app = FastAPI(title="Constellation API", version="1.0")

log.info("Pipeline ready to accept requests.")


def _bad_request(e: ValueError) -> HTTPException:
    log.warning(f"Rejected request: {e}")
    return HTTPException(status_code=400, detail=str(e))


# -----------------------------
# API endpoints
# -----------------------------
@app.get("/health")
def health() -> Dict[str, str]:
    log.debug("Health check requested")
    return {"status": "ok"}


@app.post("/spectrum", response_model=SpectrumResponse)
def spectrum(req: SpectrumRequest) -> SpectrumResponse:
    try:
        result = compute_spectrum(np.asarray(req.frame, dtype=np.float64), req.fft_size)
    except ValueError as e:
        raise _bad_request(e)
    return SpectrumResponse(real=result.real.tolist(), imag=result.imag.tolist())


@app.post("/spectrogram", response_model=SpectrogramResponse)
def spectrogram(req: SpectrogramRequest) -> SpectrogramResponse:
    log.info("🎧 New spectrogram request received")
    log_detail("Samples", len(req.samples))
    log_detail("FFT size", req.fft_size)
    try:
        matrix = build_spectrogram(
            np.asarray(req.samples, dtype=np.float64),
            sample_rate=req.sample_rate,
            fft_size=req.fft_size,
            hop=req.hop,
            min_db=req.min_db,
            max_db=req.max_db,
            exponent=req.exponent,
        )
    except ValueError as e:
        raise _bad_request(e)
    n_frames, n_bins = matrix.shape
    return SpectrogramResponse(rows=matrix.tolist(), n_frames=n_frames, n_bins=n_bins)


@app.post("/peaks", response_model=PeaksResponse)
def peaks(req: PeaksRequest) -> PeaksResponse:
    try:
        matrix = np.asarray(req.spectrogram, dtype=np.float64)
        found = extract_peaks(matrix, req.params.to_params())
    except ValueError as e:
        raise _bad_request(e)
    return PeaksResponse(peaks=[p.to_dict() for p in found])


@app.post("/pairs", response_model=PairsResponse)
def pairs(req: PairsRequest) -> PairsResponse:
    try:
        zone = req.target_zone.to_zone()
    except ValueError as e:
        raise _bad_request(e)
    candidates = [p.to_peak() for p in req.peaks]
    if req.anchor is not None:
        found = pair_with_anchor(req.anchor.to_peak(), candidates, zone)
    else:
        found = generate_pairs(candidates, zone)
    return PairsResponse(pairs=[p.to_dict() for p in found])


@app.post("/analyze", response_model=AnalyzeResponse)
def analyze(req: AnalyzeRequest) -> AnalyzeResponse:
    log.info("🎧 New analysis request received")
    log_detail("Samples", len(req.samples))
    log_detail("Sample rate", req.sample_rate)
    try:
        config = req.to_config()
        signal = Signal.from_array(req.samples, req.sample_rate)
        result = run_analysis(signal, config)
        envelope = result.envelope(req.envelope_buckets)
    except ValueError as e:
        raise _bad_request(e)

    n_frames, n_bins = result.spectrogram.shape
    log.info(f"✨ Analysis complete: {len(result.peaks)} peaks, {len(result.fingerprints)} hashes")
    return AnalyzeResponse(
        n_frames=n_frames,
        n_bins=n_bins,
        duration_s=signal.duration,
        peaks=[p.to_dict() for p in result.peaks],
        pairs=[p.to_dict() for p in result.pairs],
        physical_peaks=result.physical_peaks(),
        physical_pairs=result.physical_pairs(),
        envelope=envelope.tolist(),
        hashes=[int(h) for h, _ in result.fingerprints],
        timings=result.timings,
    )
