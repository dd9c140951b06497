"""Backends for decompiled model output (text, DOT)."""

from .dot_generator import DotMode, generate_dot, save_dot_file
from .text_writer import render_expression, render_model, render_statement, save_model_file

__all__ = [
    "DotMode",
    "generate_dot",
    "save_dot_file",
    "render_expression",
    "render_model",
    "render_statement",
    "save_model_file",
]
