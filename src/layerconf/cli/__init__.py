"""
layerconf CLI package.

Commands live in main.py; config.py and output.py handle machine/human
output modes.
"""
