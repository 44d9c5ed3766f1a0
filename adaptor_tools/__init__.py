"""Build tools for adaptor packages: builder code generation and declaration emit."""
