"""Video Renderer - drives the external composition renderer for one video."""

import json
import shlex
import subprocess
from pathlib import Path
from typing import Any

from blessings.core.config import Settings
from blessings.core.exceptions import RenderError
from blessings.models.schemas import RenderProps
from blessings.utils.io_utils import generate_id, remove_file


class VideoRenderer:
    """Renders a personalized video by handing RenderProps to the renderer process."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize video renderer.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    def build_command(self, output_path: Path, props_file: Path) -> list[str]:
        """Build the renderer argv: command prefix, composition, output, props file."""
        return [
            *shlex.split(self.settings.renderer_command),
            self.settings.renderer_composition,
            str(output_path.resolve()),
            f"--props={props_file.resolve()}",
        ]

    def render(self, props: RenderProps, output_filename: str) -> Path:
        """
        Render one video.

        The props are written to a temporary JSON file that is removed on
        every exit path.

        Args:
            props: Renderer input
            output_filename: Name of the video inside the output directory

        Returns:
            Path to the rendered video

        Raises:
            RenderError: If the renderer fails, times out or cannot be started
        """
        output_dir = Path(self.settings.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        temp_dir = Path(self.settings.temp_dir)
        temp_dir.mkdir(parents=True, exist_ok=True)

        output_path = output_dir / output_filename
        props_file = temp_dir / f"props_{generate_id()}.json"

        try:
            with open(props_file, "w", encoding="utf-8") as f:
                json.dump(props.to_payload(), f, indent=2, ensure_ascii=False)

            cmd = self.build_command(output_path, props_file)
            self.logger.info(f"Rendering {output_filename}")
            self.logger.debug(f"Render command: {' '.join(cmd)}")

            try:
                subprocess.run(
                    cmd,
                    check=True,
                    capture_output=True,
                    text=True,
                    timeout=self.settings.render_timeout_seconds,
                    cwd=self.settings.renderer_workdir,
                )
            except subprocess.TimeoutExpired as e:
                stderr = e.stderr.decode("utf-8", errors="replace") if isinstance(e.stderr, bytes) else e.stderr
                raise RenderError(
                    output_filename, f"timed out after {self.settings.render_timeout_seconds:.0f}s", stderr=stderr
                ) from e
            except subprocess.CalledProcessError as e:
                raise RenderError(output_filename, f"exit code {e.returncode}", stderr=e.stderr) from e
            except OSError as e:
                raise RenderError(output_filename, f"could not start renderer: {e}") from e

            self.logger.info(f"Rendered {output_path}")
            return output_path
        finally:
            remove_file(props_file, self.logger)
