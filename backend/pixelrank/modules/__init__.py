# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Processing Modules
  preprocessing  validate + centre-crop + resize uploads
  remapping      luminance field + histogram-preserving rank permuter
  control        seeded tile shuffle (CTRL baseline)
  rendering      contact sheet, PNG outputs, ZIP archive
"""
