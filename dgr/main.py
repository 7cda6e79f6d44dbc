"""Demo entry point: the master publishes a frame counter, slaves print it.

Run one process with DGR_MODE=master and others with DGR_MODE=slave.
"""

import os
import sys
import time
from typing import Callable, Optional

from common.logging_config import get_logger, setup_logging, set_node_label
from dgr.exceptions import FatalReplicationError
from dgr.session import Session

logger = get_logger(__name__)

FRAME_FORMAT = "=qd"


def run_frame(session: Session, frame: int) -> int:
    """
    Share the frame counter and timestamp for one cycle.

    Returns:
        The frame number this process should render
    """
    if session.is_master():
        frame_number, _ = session.share_struct("frame", FRAME_FORMAT, frame, time.time())
        session.update()
        return frame_number

    session.update()
    frame_number, stamp = session.share_struct("frame", FRAME_FORMAT, -1, 0.0)
    if frame_number >= 0:
        logger.debug(f"Frame {frame_number} (lag {time.time() - stamp:.3f}s)")
    return frame_number


def run(
    session: Session,
    frames: Optional[int] = None,
    fps: float = 30.0,
    sleep: Callable[[float], None] = time.sleep
) -> int:
    """
    Drive the session until ``frames`` cycles have run or a fatal error occurs.

    Returns:
        Process exit status
    """
    try:
        session.init()
        set_node_label(get_logger('dgr'), session.role.value)
        session.log_records()

        frame = 0
        while frames is None or frame < frames:
            run_frame(session, frame)
            frame += 1
            if frame % max(int(fps), 1) == 0:
                logger.info(f"Completed {frame} frames")
            sleep(1.0 / fps)
    except FatalReplicationError as e:
        logger.error(f"{e}. Exiting...")
        return e.exit_code
    finally:
        session.close()

    session.log_records()
    return 0


def main() -> None:
    """Bootstrap a DGR demo process from the environment."""
    setup_logging('dgr')
    fps = float(os.getenv("DGR_DEMO_FPS", "30"))
    logger.info("Starting DGR demo...")
    try:
        status = run(Session(), fps=fps)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
        status = 0
    sys.exit(status)


if __name__ == "__main__":
    main()
