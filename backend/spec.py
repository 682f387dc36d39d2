"""
BEHAVIORAL CONSTANTS
--------------------
Single source of truth for all behavioral invariants in the engine.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final, Tuple

# =============================================================================
# Capture (microphone → remote agent)
# =============================================================================

CAPTURE_SAMPLE_RATE_HZ: Final[int] = 16_000
CAPTURE_CHANNELS: Final[int] = 1
CAPTURE_BLOCK_SAMPLES: Final[int] = 128  # platform callback cadence
CAPTURE_BUFFER_SAMPLES_DEFAULT: Final[int] = 4096
CAPTURE_MIME_TYPE: Final[str] = f"audio/pcm;rate={CAPTURE_SAMPLE_RATE_HZ}"

# PCM16 quantization is asymmetric: negative values scale by 32768,
# positive values by 32767.
PCM16_POSITIVE_SCALE: Final[float] = 32767.0
PCM16_NEGATIVE_SCALE: Final[float] = 32768.0

# =============================================================================
# Playback (remote agent → speaker)
# =============================================================================

PLAYBACK_SAMPLE_RATE_HZ: Final[int] = 24_000
PLAYBACK_CHANNELS: Final[int] = 1
PLAYBACK_DECODE_DIVISOR: Final[float] = 32768.0

# =============================================================================
# Link lifecycle / circuit breaker
# =============================================================================

MAX_RETRY_ATTEMPTS: Final[int] = 3
BACKOFF_BASE_S: Final[float] = 2.0
LIVE_CONNECT_TIMEOUT_S: Final[float] = 10.0

# =============================================================================
# Telemetry
# =============================================================================

ENTROPY_WINDOW_MAX: Final[int] = 20
UTTERANCE_WINDOW_S_DEFAULT: Final[float] = 5.0  # approximate speaking window

LOGIC_HIT_WEIGHT: Final[float] = 15.0
SCORE_CEILING: Final[float] = 100.0
CLARITY_LENGTH_PENALTY: Final[float] = 0.02
CLARITY_LOGIC_BONUS: Final[float] = 0.3

RESONANCE_SHORT_UTTERANCE_TOKENS: Final[int] = 3
RESONANCE_SHORT_UTTERANCE_FACTOR: Final[float] = 0.5
RESONANCE_INTENSITY_GAIN: Final[float] = 2.0
RESONANCE_FLAT_THRESHOLD: Final[float] = 0.1
RESONANCE_LOUD_THRESHOLD: Final[float] = 0.2

CONFIDENCE_HESITATION_PENALTY: Final[float] = 0.15
CONFIDENCE_MUMBLE_PENALTY: Final[float] = 0.2
CONFIDENCE_MUMBLE_INTENSITY: Final[float] = 0.05
CONFIDENCE_LOGIC_BONUS: Final[float] = 0.002
CONFIDENCE_AGGRESSION_BONUS: Final[float] = 0.002

# =============================================================================
# Offline simulation
# =============================================================================

SIMULATION_MODE_PREFIX: Final[str] = "[SIMULATION_MODE]: "
SIMULATION_DEFAULT_RESPONSE: Final[str] = (
    "I am not compelled by that argument. Please restructure your leverage."
)
OFFLINE_RESPONSE_DELAY_MS_DEFAULT: Final[int] = 1500

# =============================================================================
# Remote agent
# =============================================================================

LIVE_MODEL_DEFAULT: Final[str] = "gemini-2.0-flash-exp"
AVAILABLE_VOICES: Final[Tuple[str, ...]] = (
    "Kore", "Fenrir", "Puck", "Charon", "Zephyr",
)
DEFAULT_VOICE: Final[str] = "Kore"
LATENCY_PROBE_PROMPT: Final[str] = "ping"
