# -*- coding: utf-8 -*-

"""
Main entry point for launching the Storymaker console editor.
"""

from storymaker.ui.console import main

if __name__ == '__main__':
    main()
