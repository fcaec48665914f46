"""
Entry Point Script (Bootstrap)
==============================
Starts the viewer from a source checkout without installing the package.

It modifies 'sys.path' so that imports like 'from beamtwin.model...'
resolve against the 'src' directory.

Usage:
    $ python run.py [settings.json]
"""
import sys
import os

current_dir: str = os.path.dirname(os.path.abspath(__file__))
src_path: str = os.path.join(current_dir, 'src')
sys.path.insert(0, src_path)

from beamtwin.main import main

if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
