#!/usr/bin/env python3
"""
Main CLI entry point for DJ Transition Generator
"""

import sys
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple
from dj_transition.cli.args_parser import parse_command_line
from dj_transition.core.config import TransitionConfiguration
from dj_transition.core.errors import TransitionError
from dj_transition.core.models import TempoEstimate, Track, TransitionResult
from dj_transition.core.tempo_estimator import TempoEstimator
from dj_transition.core.transition_engine import TransitionEngine
from dj_transition.utils.audio_io import load_track, write_transition


class DJTransitionCLI:
    """Main CLI application class"""

    def __init__(self):
        self.config: TransitionConfiguration = None
        self.anchor: Track = None
        self.follower: Track = None
        self.estimator: TempoEstimator = None

    def run(self, args: Optional[List[str]] = None) -> int:
        """Main entry point"""
        try:
            # Parse command line arguments
            self.config, parsed = parse_command_line(args)
            self.estimator = TempoEstimator(self.config.analysis)

            # Load both tracks
            self.anchor = load_track(parsed.anchor, self.config.output_sample_rate)
            self.follower = load_track(parsed.follower, self.config.output_sample_rate)

            # Fade sizing is checked before the tempo analysis starts
            engine = TransitionEngine(self.anchor, self.follower, self.config.transition)

            anchor_tempo, follower_tempo = self._analyze_tempos()
            result = engine.render(anchor_tempo, follower_tempo)

            self._save(result, parsed.output)

            print("✅ Transition created successfully!")
            return 0

        except (TransitionError, ValueError) as e:
            print(f"❌ Error: {e}")
            return 1

    def _analyze_tempos(self) -> Tuple[TempoEstimate, TempoEstimate]:
        """Estimate both tempos, in parallel unless disabled; manual BPMs skip analysis"""
        overrides = (self.config.transition.anchor_bpm, self.config.transition.follower_bpm)
        tracks = (self.anchor, self.follower)

        def analyze_single_track(index: int) -> TempoEstimate:
            if overrides[index] is not None:
                print(f"Using manual tempo for {tracks[index].name}: {overrides[index]:.1f} BPM")
                return TempoEstimator.manual(overrides[index])
            return self.estimator.estimate(tracks[index])

        if not self.config.parallel_analysis:
            return analyze_single_track(0), analyze_single_track(1)

        with ThreadPoolExecutor(max_workers=2) as executor:
            futures = [executor.submit(analyze_single_track, index) for index in range(2)]
            results = [future.result() for future in futures]

        return results[0], results[1]

    def _save(self, result: TransitionResult, output_path: str):
        print(f"Saving transition to: {output_path}")
        write_transition(output_path, result.frames, result.sample_rate)

        print(f"\nTransition complete! 🎵")
        print(f"Duration: {result.duration_minutes:.1f} minutes")
        print(f"Sample rate: {result.sample_rate} Hz")
        print(f"File size: ~{result.file_size_mb:.1f} MB")
        print(f"Fade: {result.fade_samples / result.sample_rate:.1f}s "
              f"(output {result.fade_start / result.sample_rate:.1f}s - "
              f"{result.fade_end / result.sample_rate:.1f}s)")
        if result.tempo_matched:
            print(f"Tempo: {result.follower_tempo.bpm:.1f} BPM ramped from "
                  f"{result.anchor_tempo.bpm:.1f} BPM (initial ratio {result.initial_ratio:.4f})")
        else:
            print("Tempo: not matched (envelope-only crossfade)")


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for CLI"""
    cli = DJTransitionCLI()
    return cli.run(args)


if __name__ == "__main__":
    sys.exit(main())
