import logging
import time
from pathlib import Path

logger = logging.getLogger(__name__)


def save_card(buffer: bytes, name: str, output_dir="output") -> Path:
    """Write a rendered card to ``<output_dir>/<name>_<epoch-ms>.png``."""
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / f"{name}_{int(time.time() * 1000)}.png"
    with open(out_path, "wb") as f:
        f.write(buffer)
    logger.info(f"Card saved: {out_path}")
    return out_path
