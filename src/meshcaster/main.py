import argparse
import logging
import os
import sys
import numpy as np
from meshcaster import constants
from meshcaster.config import RenderConfig
from meshcaster.logging_config import setup_logging
from meshcaster.raycaster import RayCaster
from meshcaster.scenes import SCENES, load_demo
from meshcaster.shading import ShadowPolicy

logger = logging.getLogger(__name__)


def _vector(text):
    """Parse "x,y,z" into a 3-vector."""
    try:
        values = [float(v) for v in text.split(",")]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected x,y,z, got {text!r}") from None
    if len(values) != 3:
        raise argparse.ArgumentTypeError(f"expected 3 components, got {len(values)}")
    return np.array(values)


def build_parser():
    parser = argparse.ArgumentParser(description="Mesh ray caster CLI")
    parser.add_argument("--scene", choices=sorted(SCENES), default="showcase", help="Built-in demo scene")
    parser.add_argument("--res", type=int, nargs=2, metavar=("XRES", "YRES"), default=(320, 240),
                        help="Image resolution")
    parser.add_argument("--eye", type=_vector, help="Eye position as x,y,z (default: scene camera)")
    parser.add_argument("--center", type=_vector, help="Look-at target as x,y,z (default: scene camera)")
    parser.add_argument("--yview", type=float, help="Vertical field of view scale (default: scene camera)")
    parser.add_argument("--no-shadows", action="store_true", help="Skip shadow rays")
    parser.add_argument("--accelerator", choices=["linear", "bvh"], default=constants.DEFAULT_ACCELERATOR,
                        help="Intersection engine")
    parser.add_argument("--shadow-policy", choices=[p.value for p in ShadowPolicy],
                        default=ShadowPolicy.DARKEST.value,
                        help="Color of pixels occluded from several lights")
    parser.add_argument("--normalize", action="store_true", help="Scale the image so its brightest channel is 1")
    parser.add_argument("--output", "-o", help="Write the render to this image file")
    parser.add_argument("--format", default=None, help="Image format token: png (default), jpg or jpeg")
    parser.add_argument("--ppm", action="store_true", help="Print the render as text PPM on stdout")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument("--ui", action="store_true", help="Launch the interactive Gradio UI")
    return parser


def render_demo(args):
    """Render the selected demo scene; returns the process exit code."""
    xres, yres = args.res
    demo = load_demo(args.scene, xres, yres, shadows=not args.no_shadows)
    config = RenderConfig(accelerator=args.accelerator, shadow_policy=args.shadow_policy)

    caster = RayCaster(demo.scene, config)
    eye = args.eye if args.eye is not None else demo.eye
    center = args.center if args.center is not None else demo.center
    yview = args.yview if args.yview is not None else demo.yview
    caster.ray_trace(eye, center, yview=yview)

    if args.normalize:
        caster.normalize_image()
    if args.ppm:
        caster.print_ppm(sys.stdout)
    if args.output:
        fmt = args.format
        if fmt is None:
            fmt = os.path.splitext(args.output)[1].lstrip(".") or constants.DEFAULT_FORMAT
        if not caster.export_image(args.output, fmt):
            return 1
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(getattr(logging, str(args.log_level).upper(), logging.INFO))

    if args.ui:
        from meshcaster.ui import create_ui
        logger.info("Launching UI...")
        demo = create_ui()
        demo.launch()
        return 0
    if not (args.ppm or args.output):
        parser.print_help()
        return 0
    return render_demo(args)


def run_ui():
    """Entry point for meshcaster-ui command."""
    return main(["--ui"])


if __name__ == "__main__":
    sys.exit(main())
