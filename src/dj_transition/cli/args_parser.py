#!/usr/bin/env python3
"""
Command-line argument parser
Centralized argument parsing with validation
"""

import argparse
from typing import List, Optional, Tuple
from dj_transition.core.config import (AudioConstants, CrossfadeCurve, FileConstants,
                                       TransitionConfiguration, TransitionSettings)


class ArgumentParser:
    """Argument parser with validation and configuration building"""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser with all options"""
        parser = argparse.ArgumentParser(
            prog='dj-transition',
            description='Tempo-matched DJ transition between two tracks',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self._get_examples_text()
        )

        # Positional arguments
        parser.add_argument('anchor', help='Track that plays first and sets the tempo')
        parser.add_argument('follower', help='Track that is tempo-matched and mixed in')
        parser.add_argument('-o', '--output', default=FileConstants.DEFAULT_OUTPUT_NAME,
                            help=f'Output WAV file (default: {FileConstants.DEFAULT_OUTPUT_NAME})')

        # Transition settings
        transition_group = parser.add_argument_group('Transition Settings')
        transition_group.add_argument('--fade-seconds', type=float,
                                      default=AudioConstants.DEFAULT_FADE_SECONDS,
                                      help=f'Crossfade length in seconds '
                                           f'(default: {AudioConstants.DEFAULT_FADE_SECONDS})')
        transition_group.add_argument('--curve', choices=[curve.value for curve in CrossfadeCurve],
                                      default=CrossfadeCurve.EQUAL_POWER.value,
                                      help='Crossfade envelope shape (default: equal-power)')
        transition_group.add_argument('--block-size', type=int,
                                      default=AudioConstants.DEFAULT_BLOCK_SIZE,
                                      help=f'Samples per tempo-ramp block '
                                           f'(default: {AudioConstants.DEFAULT_BLOCK_SIZE})')

        # Tempo settings
        tempo_group = parser.add_argument_group('Tempo')
        tempo_group.add_argument('--no-tempo-match', action='store_true',
                                 help='Disable tempo matching (envelope-only crossfade)')
        tempo_group.add_argument('--anchor-bpm', type=float,
                                 help='Use this BPM for the anchor instead of detecting it')
        tempo_group.add_argument('--follower-bpm', type=float,
                                 help='Use this BPM for the follower instead of detecting it')
        tempo_group.add_argument('--sequential-analysis', action='store_true',
                                 help='Analyze the two tracks one after the other')

        return parser

    def _get_examples_text(self) -> str:
        """Get examples text for help"""
        return """
Examples:
  # Basic transition with a 5 second equal-power fade
  dj-transition song1.wav song2.wav

  # Longer fade written to a custom file
  dj-transition --fade-seconds 12 -o mix.wav song1.wav song2.wav

  # Known tempos, linear fade
  dj-transition --anchor-bpm 124 --follower-bpm 128 --curve linear song1.wav song2.wav
        """

    def parse_args(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        """Parse arguments with validation"""
        parsed = self.parser.parse_args(args)

        # Validate arguments
        self._validate_args(parsed)

        return parsed

    def _validate_args(self, args: argparse.Namespace):
        """Validate parsed arguments"""
        if args.fade_seconds <= 0.0:
            self.parser.error("--fade-seconds must be positive")
        if args.block_size < AudioConstants.MIN_BLOCK_SIZE:
            self.parser.error(f"--block-size must be at least {AudioConstants.MIN_BLOCK_SIZE}")
        if args.anchor == args.output or args.follower == args.output:
            self.parser.error("Output file must differ from the input tracks")

    def create_configuration(self, args: argparse.Namespace) -> TransitionConfiguration:
        """Create TransitionConfiguration from parsed arguments"""
        transition_settings = TransitionSettings(
            fade_seconds=args.fade_seconds,
            curve=CrossfadeCurve(args.curve),
            block_size=args.block_size,
            tempo_matching=not args.no_tempo_match,
            anchor_bpm=args.anchor_bpm,
            follower_bpm=args.follower_bpm
        )

        config = TransitionConfiguration(
            transition=transition_settings,
            parallel_analysis=not args.sequential_analysis
        )

        # Validate the complete configuration
        config.validate()

        return config


def parse_command_line(args: Optional[List[str]] = None) -> Tuple[TransitionConfiguration, argparse.Namespace]:
    """Convenience function to parse command line and return config + parsed arguments"""
    parser = ArgumentParser()
    parsed = parser.parse_args(args)
    return parser.create_configuration(parsed), parsed
