"""Console app: argparse CLI and the animation loop."""
