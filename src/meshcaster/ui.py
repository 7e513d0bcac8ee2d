import gradio as gr
import numpy as np
import PIL.Image
from meshcaster.config import RenderConfig
from meshcaster.raycaster import RayCaster
from meshcaster.scenes import SCENES, load_demo

CSS = """
.gradio-container { background-color: #111418 !important; }
#output_img { border-radius: 6px; overflow: hidden; }
#output_img img { object-fit: contain; image-rendering: pixelated; }

/* Keep the previous frame visible while the next one renders */
.generating, .pending { opacity: 1 !important; filter: none !important; }
.progress-view, .loader { display: none !important; }
"""

DEFAULTS = ["showcase", 0.0, 2.5, 7.0, 1.2, 256, True, "linear"]


def frame_from_buffer(data, xres, yres):
    """Image from the caster's bottom-up byte buffer, as a display would upload it."""
    rows = np.asarray(data, dtype=np.uint8).reshape(yres, xres, 3)
    return PIL.Image.fromarray(rows[::-1])


def create_ui():

    def render_frame(scene_name, eye_x, eye_y, eye_z, yview, resolution, use_shadows, accelerator):
        # Maintain 4:3 aspect ratio
        xres = int(resolution)
        yres = int(resolution * 0.75)
        demo = load_demo(scene_name, xres, yres, shadows=use_shadows)

        eye = np.array([eye_x, eye_y, eye_z])
        # Looking at the target from the target itself has no direction
        if np.linalg.norm(eye - demo.center) < 1e-6:
            eye = demo.eye

        caster = RayCaster(demo.scene, RenderConfig(accelerator=accelerator))
        caster.ray_trace(eye, demo.center, yview=yview)
        return frame_from_buffer(caster.data, xres, yres)

    with gr.Blocks(title="Mesh Ray Caster", css=CSS) as demo:
        gr.Markdown("# Mesh Ray Caster")
        gr.Markdown("Flat-shaded triangle scenes with shadow rays and visible point lights.")

        with gr.Row():
            with gr.Column(scale=1):
                with gr.Group():
                    gr.Markdown("### Camera")
                    scene_dd = gr.Dropdown(choices=sorted(SCENES), value=DEFAULTS[0], label="Scene")
                    eye_x = gr.Slider(minimum=-10, maximum=10, value=DEFAULTS[1], step=0.1, label="Eye X")
                    eye_y = gr.Slider(minimum=-10, maximum=10, value=DEFAULTS[2], step=0.1, label="Eye Y")
                    eye_z = gr.Slider(minimum=-10, maximum=10, value=DEFAULTS[3], step=0.1, label="Eye Z")
                    yview_slider = gr.Slider(minimum=0.2, maximum=3.0, value=DEFAULTS[4], step=0.05,
                                             label="Field of View", info="Screen height at unit distance")
                    res_slider = gr.Slider(minimum=64, maximum=640, value=DEFAULTS[5], step=64,
                                           label="Render Resolution", info="Lower for speed, higher for quality")
                    reset_btn = gr.Button("Reset Viewport", variant="secondary")

                with gr.Group():
                    gr.Markdown("### Rendering")
                    shad_toggle = gr.Checkbox(value=DEFAULTS[6], label="Shadows", info="One shadow ray per light")
                    accel_radio = gr.Radio(choices=["linear", "bvh"], value=DEFAULTS[7], label="Accelerator")

            with gr.Column(scale=2):
                output_img = gr.Image(label="Viewport", interactive=False, elem_id="output_img")

        inputs = [scene_dd, eye_x, eye_y, eye_z, yview_slider, res_slider, shad_toggle, accel_radio]

        def reset_view():
            return list(DEFAULTS)

        reset_btn.click(fn=reset_view, outputs=inputs)

        for input_comp in inputs:
            input_comp.change(fn=render_frame, inputs=inputs, outputs=output_img,
                              trigger_mode="always_last", show_progress="hidden")

        demo.load(fn=render_frame, inputs=inputs, outputs=output_img, show_progress="hidden")

    return demo


if __name__ == "__main__":
    create_ui().launch()
