"""PhotoFrame gallery service: store host-supplied images in the shared pictures area."""
