# SPDX-License-Identifier: LGPL-3.0-or-later
# vsbuild/cli/__init__.py
