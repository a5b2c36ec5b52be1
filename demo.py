"""
Orbit Engine Demonstration

This script runs the per-frame simulation pipeline headless:
- TLE parsing, validation and line reconstruction
- Primary target state from the selected data source
- Satellite list propagation and multi-file epoch switching
- Time warp driven by frame ticks
- Ground track plot of the primary target

Usage:
    python demo.py [--tle FILE ...] [--frames N] [--warp SECONDS]
                   [--source {Telemetry,OEM,TLE,OSV}] [--frame {J2000,ECEF}]
                   [--plot] [--verbose]

Arguments:
    --tle: One or more TLE files; several files are switched by epoch
    --frames: Number of frames to run
    --warp: Simulated seconds per frame (enables time warp)
    --plot: Save a ground track plot
    --verbose: Enable debug logging
"""

import argparse
import logging
from pathlib import Path
from typing import Dict, Any, List, Tuple

import matplotlib.pyplot as plt
import numpy as np

from config import REFERENCE_ISS_TLE
from logging_config import get_logger, configure_logging
from orbit_engine.context import FrameResult, SimulationContext
from orbit_engine.options import DataSource, DisplayFrame, SimulationOptions
from orbit_engine.tle_parser import TLEParser

logger = get_logger(__name__)


def demonstrate_tle_parsing(parser: TLEParser, line1: str, line2: str, name: str) -> Dict[str, Any]:
    """
    Parse a TLE and rebuild its lines from the parsed fields.

    Parameters
    ----------
    parser : TLEParser
        TLE parser instance
    line1 : str
        TLE line 1
    line2 : str
        TLE line 2
    name : str
        Satellite name

    Returns
    -------
    dict
        Parsed TLE data
    """
    logger.info(f"Parsing TLE for {name}")
    tle_data = parser.parse_tle(line1, line2, name)

    logger.info(f"NORAD ID: {tle_data['norad_id']}")
    logger.info(f"Epoch: {tle_data['epoch_datetime'].isoformat()}")
    logger.info(f"Inclination: {tle_data['inclination_deg']:.4f} degrees")
    logger.info(f"Eccentricity: {tle_data['eccentricity']:.7f}")
    logger.info(f"Mean Motion: {tle_data['mean_motion_rev_per_day']:.8f} rev/day")

    rebuilt_line1, rebuilt_line2 = parser.tle_data_to_lines(tle_data)
    if (rebuilt_line1, rebuilt_line2) == (line1, line2):
        logger.info("Reconstructed lines match the input")
    else:
        logger.warning(f"Reconstructed lines differ:\n{rebuilt_line1}\n{rebuilt_line2}")

    return tle_data


def run_frames(context: SimulationContext, frames: int) -> List[FrameResult]:
    """
    Run the frame pipeline and log the primary target each frame.

    Parameters
    ----------
    context : SimulationContext
        Configured simulation
    frames : int
        Number of frames

    Returns
    -------
    list of FrameResult
    """
    results = []
    for index in range(frames):
        frame = context.update_frame()
        results.append(frame)

        if frame.primary is None:
            logger.info(f"Frame {index:3d} {frame.instant.isoformat()}: no primary state")
            continue

        geo = frame.primary.geodetic
        logger.info(
            f"Frame {index:3d} {frame.instant.isoformat()}: "
            f"lat={geo.latitude:7.2f} lon={geo.longitude:8.2f} alt={geo.altitude / 1000.0:7.1f}km "
            f"satellites={len(frame.fleet)} links={len(frame.links)} path={len(frame.path)}"
        )
    return results


def plot_ground_track(results: List[FrameResult], output_file: str = "ground_track.png") -> None:
    """
    Plot the primary target's ground track with the sub-solar and sub-lunar points.

    Parameters
    ----------
    results : list of FrameResult
        Frames to plot
    output_file : str
        Image path
    """
    track: List[Tuple[float, float]] = [
        (frame.primary.geodetic.longitude, frame.primary.geodetic.latitude)
        for frame in results if frame.primary is not None
    ]
    if not track:
        logger.warning("No primary states to plot")
        return

    lon, lat = np.array(track).T
    sun_lat, sun_lon = results[-1].subsolar
    moon_lat, moon_lon = results[-1].sublunar

    fig, ax = plt.subplots(figsize=(12, 6))
    ax.scatter(lon, lat, s=4, color="tab:blue", label="Primary target")
    ax.scatter([sun_lon], [sun_lat], s=80, color="gold", edgecolor="orange", label="Sub-solar point")
    ax.scatter([moon_lon], [moon_lat], s=60, color="lightgray", edgecolor="dimgray", label="Sub-lunar point")
    ax.set_xlim(-180, 180)
    ax.set_ylim(-90, 90)
    ax.set_xlabel("Longitude (deg)")
    ax.set_ylabel("Latitude (deg)")
    ax.set_title("Ground Track")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="lower left")

    plt.tight_layout()
    plt.savefig(output_file, dpi=150, bbox_inches="tight")
    logger.info(f"Saved ground track plot to {output_file}")
    plt.close(fig)


def main() -> None:
    """Main demonstration entry point."""
    parser = argparse.ArgumentParser(description="Orbit Engine Demonstration")
    parser.add_argument("--tle", nargs="*", default=[], help="TLE file(s) to load")
    parser.add_argument("--frames", type=int, default=20, help="Number of frames to run")
    parser.add_argument("--warp", type=float, default=None, help="Simulated seconds per frame")
    parser.add_argument("--source", choices=[s.value for s in DataSource], default=DataSource.TLE.value)
    parser.add_argument("--frame", choices=[f.value for f in DisplayFrame], default=DisplayFrame.ECEF.value)
    parser.add_argument("--links", default=None, help="Inter-satellite link file (satellite names)")
    parser.add_argument("--paths", default=None, help="Shortest-path file")
    parser.add_argument("--plot", action="store_true", help="Save a ground track plot")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    configure_logging(level=logging.DEBUG if args.verbose else None)

    logger.info("Orbit Engine Demonstration")
    logger.info("=" * 60)

    demonstrate_tle_parsing(TLEParser(), REFERENCE_ISS_TLE["line1"],
                            REFERENCE_ISS_TLE["line2"], REFERENCE_ISS_TLE["name"])

    options = SimulationOptions(
        source=DataSource(args.source),
        display_frame=DisplayFrame(args.frame),
        warp_enabled=args.warp is not None,
        warp_seconds=args.warp if args.warp is not None else 1.0,
        enable_list=bool(args.tle),
    )
    context = SimulationContext(options)

    if len(args.tle) == 1:
        context.load_tle_text(Path(args.tle[0]).read_text())
    elif args.tle:
        context.load_tle_files((Path(name).name, Path(name).read_text()) for name in args.tle)
    else:
        # Start at the reference element epoch
        context.set_clock_from_tle()

    if args.links:
        context.load_link_file(Path(args.links).read_text())
    if args.paths:
        context.load_shortest_path_file(Path(args.paths).read_text())

    logger.info("")
    results = run_frames(context, args.frames)

    if args.plot:
        plot_ground_track(results)

    logger.info("=" * 60)
    logger.info("Demonstration complete")


if __name__ == "__main__":
    main()
