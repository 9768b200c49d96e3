"""Make sure the LocalStack image is available locally before creating a container."""

from __future__ import annotations

import docker.errors
import structlog

from localstack_runner.docker.client import RuntimeClient
from localstack_runner.errors import ProvisionError

log = structlog.get_logger(__name__)


class ImageProvisioner:
    """Pulls an image only when no local image carries the exact tag.

    Args:
        runtime: Runtime client used for listing and pulling.
    """

    def __init__(self, runtime: RuntimeClient) -> None:
        self._runtime = runtime

    def is_present(self, name: str) -> bool:
        for tags in self._runtime.list_image_tags(name):
            if name in tags:
                return True
        return False

    def ensure_image(self, name: str) -> None:
        """Ensure `name` (e.g. "localstack/localstack:3.0") exists locally.

        Raises:
            ProvisionError: Listing, pulling or draining the pull stream failed.
        """
        if self.is_present(name):
            log.debug("image_present", image=name)
            return

        log.info("image_pull_started", image=name)
        stream = self._runtime.pull_image(name)
        try:
            for progress in stream:
                if isinstance(progress, dict) and progress.get("error"):
                    raise ProvisionError(f"pull of {name} failed: {progress['error']}")
        except (docker.errors.DockerException, OSError) as exc:
            raise ProvisionError(f"pull of {name} failed: {exc}") from exc
        finally:
            stream.close()
        log.info("image_pull_done", image=name)
