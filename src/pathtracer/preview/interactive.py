"""Interactive preview window using Taichi GGUI.

The window drives a ProgressiveRenderer one pass per frame, so the image
starts noisy and refines while it is on screen. Rendering stops adding
samples once the target count is reached; the window stays open until it
is closed or ESC is pressed.

Example:
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>> from pathtracer.preview.interactive import InteractivePreview
    >>>
    >>> renderer = ProgressiveRenderer(scene, camera, 600, 400, max_depth=50)
    >>> preview = InteractivePreview(600, 400, title="Random spheres")
    >>> preview.run_progressive(renderer, target_samples=500)
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

from pathtracer.preview.display import DEFAULT_GAMMA, process_image_for_display

if TYPE_CHECKING:
    import numpy.typing as npt

    from pathtracer.core.progressive import ProgressiveRenderer

logger = logging.getLogger(__name__)


class InteractivePreview:
    """GGUI window showing a progressive render as it converges.

    Attributes:
        width: Image and window width in pixels.
        height: Image and window height in pixels.
        gamma: Display gamma applied to each frame.
        frame: (width, height) f32 field holding the encoded frame, y = 0
            at the bottom.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        title: str = "Path Tracer - Interactive Preview",
        gamma: float = DEFAULT_GAMMA,
    ) -> None:
        """Create the display buffer. The window opens on first use.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.
            title: Window title.
            gamma: Gamma used to encode the linear image for display.
        """
        self.width = width
        self.height = height
        self.gamma = gamma
        self._title = title
        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None

        self.frame = ti.Vector.field(3, dtype=ti.f32, shape=(width, height))

    def _initialize_window(self) -> None:
        if self._window is not None:
            return
        self._window = ti.ui.Window(
            name=self._title,
            res=(self.width, self.height),
            vsync=True,
        )
        self._canvas = self._window.get_canvas()

    @property
    def window(self) -> ti.ui.Window:
        """The GGUI window, opened on first access."""
        self._initialize_window()
        return self._window

    @property
    def canvas(self) -> ti.ui.Canvas:
        """Canvas of the window."""
        self._initialize_window()
        return self._canvas

    def update_image(self, image: npt.NDArray[np.floating]) -> None:
        """Copy a display-encoded image into the frame field.

        Args:
            image: Array of shape (height, width, 3), row 0 at the top,
                values in [0, 1].

        Raises:
            ValueError: If the image is not (height, width, 3).
        """
        if image.shape != (self.height, self.width, 3):
            raise ValueError(
                f"Expected an image of shape {(self.height, self.width, 3)}, got {image.shape}"
            )

        # Taichi fields are (x, y) with y = 0 at the bottom
        columns = np.transpose(np.flipud(image), (1, 0, 2))
        self.frame.from_numpy(np.ascontiguousarray(columns, dtype=np.float32))

    def is_running(self) -> bool:
        """False once the window was closed or ESC was pressed."""
        return self.window.running

    def show_frame(self) -> None:
        """Draw the frame field and present it."""
        self.canvas.set_image(self.frame)
        self.window.show()

    def _handle_events(self) -> None:
        for event in self.window.get_events(ti.ui.PRESS):
            if event.key == ti.ui.ESCAPE:
                self.window.running = False

    def run_progressive(
        self,
        renderer: ProgressiveRenderer,
        target_samples: int,
        *,
        export_path: str | None = None,
    ) -> int:
        """Render one pass per frame until the target or the window closes.

        Args:
            renderer: The ProgressiveRenderer to drive.
            target_samples: Samples per pixel at which rendering stops.
            export_path: If given, the image is saved there when the loop
                ends.

        Returns:
            The number of samples accumulated when the loop ended.
        """
        self._initialize_window()
        logger.info("Interactive preview: rendering up to %d samples", target_samples)

        while self.is_running():
            self._handle_events()
            if renderer.sample_count < target_samples:
                renderer.render(num_samples=1)
                image = process_image_for_display(renderer.get_image_numpy(), self.gamma)
                self.update_image(image)
                if renderer.sample_count == target_samples:
                    logger.info("Reached %d samples", target_samples)
            self._draw_gui_panel(renderer, target_samples)
            self.show_frame()

        if export_path is not None and renderer.sample_count > 0:
            renderer.save_image(export_path, gamma=self.gamma)

        return renderer.sample_count

    def _draw_gui_panel(self, renderer: ProgressiveRenderer, target_samples: int) -> None:
        with self.window.GUI.sub_window("Render", 0.02, 0.02, 0.3, 0.12) as gui:
            gui.text(f"Samples: {renderer.sample_count}/{target_samples}")
            if gui.button("Export PNG"):
                self._export_png(renderer)

    def _export_png(self, renderer: ProgressiveRenderer) -> None:
        """Save the current image to a timestamped PNG in the working directory."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"render_{timestamp}.png"
        renderer.save_image(filename, gamma=self.gamma)
        logger.info("Exported %s (%d SPP)", filename, renderer.sample_count)

    def close(self) -> None:
        """Stop the event loop."""
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        """Whether a GGUI window can be opened (False on headless hosts)."""
        if os.name == "nt":
            return True
        has_x11 = bool(os.environ.get("DISPLAY"))
        if os.uname().sysname == "Darwin":
            # Local sessions have a window server; SSH needs X forwarding
            return has_x11 or "SSH_CONNECTION" not in os.environ
        return has_x11 or bool(os.environ.get("WAYLAND_DISPLAY"))
