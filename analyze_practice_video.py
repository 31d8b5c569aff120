#!/usr/bin/env python3
"""
Run a local practice video through the pose feedback pipeline and print the
feedback timeline.

Usage: python analyze_practice_video.py VIDEO_PATH "Tree Pose" [--interval 1.0]
"""

import argparse
import sys
from pathlib import Path

from zenflow.services.pose_feedback import FeedbackSession, PoseFeedbackAnalyzer
from zenflow.services.pose_rules import YogaPose
from zenflow.services.pose_sampler import MediaPipePoseProvider, VideoFileSampler


def main():
    parser = argparse.ArgumentParser(description="Yoga pose feedback for a recorded video")
    parser.add_argument("video_path")
    parser.add_argument("pose", help="One of: " + ", ".join(p.value for p in YogaPose))
    parser.add_argument("--interval", type=float, default=1.0, help="Seconds of video between samples")
    args = parser.parse_args()

    if not Path(args.video_path).exists():
        print(f"❌ Video not found: {args.video_path}")
        sys.exit(1)

    print(f"🧘 Analyzing {args.pose} in {args.video_path}")
    print("=" * 50)

    sampler = VideoFileSampler(args.video_path, MediaPipePoseProvider(), interval=args.interval)
    session = FeedbackSession(pose_name=args.pose)
    try:
        analyzer = PoseFeedbackAnalyzer(args.pose)
        for observation, feedback in analyzer.stream(sampler):
            session.record(feedback, observation.timestamp)
            angle = f"{feedback.angle:6.1f}°" if feedback.angle is not None else "   --  "
            print(f"{observation.timestamp:7.2f}s  {angle}  {feedback.message}")
    finally:
        sampler.close()

    print("-" * 50)
    print(f"Summary: {session.summary or 'No pose detected'}")
    for verdict, count in session.verdict_counts.items():
        print(f"  {verdict}: {count}")


if __name__ == "__main__":
    main()
