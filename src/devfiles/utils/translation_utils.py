#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# translation_utils.py - Utilities for translation support
#
import gettext
import os

# Default for system install
locale_dir = "/usr/share/locale"

# Allow a bundled locale tree next to the package (wheel or checkout)
_bundled_locale = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "locale"
)
if os.path.isdir(_bundled_locale):
    locale_dir = _bundled_locale

gettext.bindtextdomain("devfiles", locale_dir)
gettext.textdomain("devfiles")

# Export _ directly as the translation function
_ = gettext.gettext
