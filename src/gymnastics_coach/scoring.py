"""
Pose scoring engine for gymnastics routine evaluation.

Converts a sequence of landmark frames into posture, stability and smoothness
sub-scores, a composite 0-10 AI score and an ordered list of coaching
feedback lines. The engine is a pure function: no I/O, no shared state.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from .models import Frame, Joint, Landmark, ScoreBadge, ScoreRecord

logger = logging.getLogger(__name__)


# Reference values for ideal gymnastics form
IDEAL_KNEE_ANGLE = 170.0  # nearly straight legs
IDEAL_HIP_ANGLE = 175.0
MAX_KNEE_DEVIATION = 35.0
STRAIGHT_LEG_TOLERANCE = 20.0

MIN_LANDMARK_SCORE = 0.5
BALANCE_TOLERANCE = 0.1

POSTURE_WEIGHT = 0.4
STABILITY_WEIGHT = 0.3
SMOOTHNESS_WEIGHT = 0.3

STABILITY_FEEDBACK_THRESHOLD = 70
SMOOTHNESS_FEEDBACK_THRESHOLD = 75
POSTURE_FEEDBACK_THRESHOLD = 80

NO_POSE_FEEDBACK = (
    "No usable pose data detected – make sure your full body is visible and well lit."
)

_KNOWN_JOINTS = {joint.value: joint for joint in Joint}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity."""
    return int(math.floor(value + 0.5))


def round1(value: float) -> float:
    """Round to one decimal place, halves toward +infinity."""
    return math.floor(value * 10 + 0.5) / 10


def composite_score(posture: int, stability: int, smoothness: int) -> float:
    """Weighted 0-100 composite scaled to 0-10 with one decimal."""
    weighted = (
        posture * POSTURE_WEIGHT +
        stability * STABILITY_WEIGHT +
        smoothness * SMOOTHNESS_WEIGHT
    ) / 10
    return round1(weighted)


def score_badge(ai_score: float) -> ScoreBadge:
    """Map a 0-10 AI score to its display badge."""
    if ai_score >= 9:
        return ScoreBadge.EXCELLENT
    if ai_score >= 7:
        return ScoreBadge.GOOD
    if ai_score >= 5:
        return ScoreBadge.FAIR
    return ScoreBadge.NEEDS_WORK


def calculate_angle(p1: Landmark, p2: Landmark, p3: Landmark) -> float:
    """
    Planar angle at vertex ``p2`` formed by rays p2->p1 and p2->p3.

    Returns:
        Angle in degrees within [0, 180]
    """
    radians = (
        np.arctan2(p3.y - p2.y, p3.x - p2.x) -
        np.arctan2(p1.y - p2.y, p1.x - p2.x)
    )
    angle = abs(float(np.degrees(radians)))
    if angle > 180.0:
        angle = 360.0 - angle
    return angle


def index_frame(frame: Frame) -> Dict[Joint, Landmark]:
    """
    Build a joint -> landmark index for one frame.

    The first landmark carrying a given name wins; names that are not
    known joints are ignored.
    """
    index: Dict[Joint, Landmark] = {}
    for landmark in frame:
        joint = _KNOWN_JOINTS.get(landmark.name)
        if joint is not None and joint not in index:
            index[joint] = landmark
    return index


def _is_valid(joints: Dict[Joint, Landmark]) -> bool:
    required = (Joint.LEFT_HIP, Joint.LEFT_KNEE, Joint.LEFT_ANKLE, Joint.LEFT_SHOULDER)
    if any(joint not in joints for joint in required):
        return False
    # shoulder confidence is not gated
    return all(
        joints[joint].score > MIN_LANDMARK_SCORE
        for joint in (Joint.LEFT_HIP, Joint.LEFT_KNEE, Joint.LEFT_ANKLE)
    )


def _empty_record(total_frames: int) -> ScoreRecord:
    return ScoreRecord(
        ai_score=0.0,
        posture=0,
        stability=0,
        smoothness=0,
        feedback=[NO_POSE_FEEDBACK],
        avg_knee_angle=0.0,
        avg_hip_angle=0.0,
        landing_stability=0.0,
        valid_frames=0,
        total_frames=total_frames,
    )


def _build_feedback(avg_knee_angle: float, posture: int, stability: int, smoothness: int) -> List[str]:
    feedback: List[str] = []

    if avg_knee_angle < IDEAL_KNEE_ANGLE - STRAIGHT_LEG_TOLERANCE:
        feedback.append(
            f"Knee bend averaged {avg_knee_angle:.1f}° – try to keep legs straighter "
            f"during jumps for better form."
        )
    else:
        feedback.append("Good leg extension! Knee angles are well maintained.")

    if stability > STABILITY_FEEDBACK_THRESHOLD:
        feedback.append("Excellent landing stability – body alignment is balanced throughout.")
    else:
        feedback.append(
            "Work on landing stability – focus on keeping your center of gravity "
            "aligned over your feet."
        )

    if smoothness > SMOOTHNESS_FEEDBACK_THRESHOLD:
        feedback.append("Smooth transitions detected – great flow between movements!")
    else:
        feedback.append("Practice smoother transitions between elements to improve overall flow.")

    if posture > POSTURE_FEEDBACK_THRESHOLD:
        feedback.append("Outstanding posture control throughout the routine!")

    return feedback


def analyze_pose(frames: Optional[Sequence[Frame]]) -> ScoreRecord:
    """
    Score a routine from its landmark frames.

    Each frame is scored independently. A frame counts only when the left
    hip, knee, ankle and shoulder are present and hip, knee and ankle are
    detected with confidence above 0.5.

    Args:
        frames: Ordered landmark frames of one routine

    Returns:
        ScoreRecord with sub-scores, AI score and feedback. Input without a
        single usable frame yields a zero record instead of raising.
    """
    frames = frames or []

    total_knee_angle = 0.0
    total_hip_angle = 0.0
    valid_frames = 0
    posture_deviations = 0
    stability_hits = 0

    for frame in frames:
        joints = index_frame(frame)
        if not _is_valid(joints):
            continue

        hip = joints[Joint.LEFT_HIP]
        knee = joints[Joint.LEFT_KNEE]
        ankle = joints[Joint.LEFT_ANKLE]
        shoulder = joints[Joint.LEFT_SHOULDER]

        valid_frames += 1

        knee_angle = calculate_angle(hip, knee, ankle)
        hip_angle = calculate_angle(shoulder, hip, knee)
        total_knee_angle += knee_angle
        total_hip_angle += hip_angle

        if abs(knee_angle - IDEAL_KNEE_ANGLE) > MAX_KNEE_DEVIATION:
            posture_deviations += 1

        if abs(hip.x - ankle.x) < BALANCE_TOLERANCE:
            stability_hits += 1

    if valid_frames == 0:
        logger.debug(f"No valid frames among {len(frames)}, returning zero record")
        return _empty_record(len(frames))

    avg_knee_angle = total_knee_angle / valid_frames
    avg_hip_angle = total_hip_angle / valid_frames
    landing_stability = stability_hits / valid_frames * 100

    knee_score = max(0.0, 100 - abs(avg_knee_angle - IDEAL_KNEE_ANGLE) * 2)
    hip_score = max(0.0, 100 - abs(avg_hip_angle - IDEAL_HIP_ANGLE) * 2)
    posture = round_half_up((knee_score + hip_score) / 2)
    stability = round_half_up(landing_stability)
    smoothness = round_half_up(max(0.0, 100 - posture_deviations / valid_frames * 100))

    record = ScoreRecord(
        ai_score=composite_score(posture, stability, smoothness),
        posture=posture,
        stability=stability,
        smoothness=smoothness,
        feedback=_build_feedback(avg_knee_angle, posture, stability, smoothness),
        avg_knee_angle=avg_knee_angle,
        avg_hip_angle=avg_hip_angle,
        landing_stability=landing_stability,
        valid_frames=valid_frames,
        total_frames=len(frames),
    )

    logger.debug(
        f"Scored {valid_frames}/{len(frames)} valid frames: "
        f"ai={record.ai_score} posture={posture} stability={stability} smoothness={smoothness}"
    )
    return record
