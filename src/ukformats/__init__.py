"""
ukformats — binary codecs for the game's file formats.

  sarc   SARC archives and Yaz0 compression
  aamp   AAMP parameter archives
  byml   BYML binary trees
"""
