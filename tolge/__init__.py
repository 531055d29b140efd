"""
Tolge - Article Translation Assistant

Extracts article text from news and science pages, translates it through a
multi-turn conversation with a text-generation model and assembles the
finished translation into a Word document.
"""

__version__ = "0.1.0"
