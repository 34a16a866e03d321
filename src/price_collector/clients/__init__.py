"""HTTP clients for the external price sources."""
