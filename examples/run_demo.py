#!/usr/bin/env python3
"""
Demo script listing the example mock registry at every verbosity
"""

import os
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from opentmf_utils.lsopentmf.main import main as lsopentmf

REGISTRY_PATH = Path(__file__).parent / "mock_registry.yaml"


def main():
    """Main demo function"""
    os.environ["OPENTMF_BACKEND"] = "mock"
    os.environ["OPENTMF_MOCK_REGISTRY"] = str(REGISTRY_PATH)

    status = 0
    for argv in (["-d"], ["-d", "-v"], ["-d", "-vv"]):
        print("=" * 50)
        print("lsopentmf " + " ".join(argv))
        print("=" * 50)
        sys.stdout.flush()
        status |= lsopentmf(argv)
        sys.stderr.flush()
        print()

    return status


if __name__ == "__main__":
    sys.exit(main())
