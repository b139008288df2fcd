"""Batch operations over legacy BIF candidates.

Submodules:
    convert -- ConvertOrchestrator. Skips candidates that already have tiles
               for their width (unless force_convert), extracts BIF frames into
               a scratch directory that is always removed, hands them to the
               tile backend with the BIF interval and configured tile size and
               quality, and saves the returned TrickplayInfo tagged with the
               item id. Optional thread pool (max_workers) with per-candidate
               log buffers flushed in candidate order.
    delete  -- DeleteOrchestrator. Deletes a BIF only when matching tiles exist
               (unless force_delete), enforces the .bif extension and the
               "trickplay" folder name, and removes the folder when only
               .json/.ignore residue is left (or always, with delete_non_empty).
               Folders still holding other BIFs are kept quietly; folders with
               other residue are reported.
"""
