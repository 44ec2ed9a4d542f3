"""
Speech Domain

Audio ingestion, transcoding and recognition for one uploaded file.
"""
