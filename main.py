#!/usr/bin/env python3
"""
Clip Creator - Main Entry Point
Automated short-form video generation from a topic, a category and a tone
"""

import sys

from clip_creator.cli import main

if __name__ == "__main__":
    sys.exit(main())
