"""
Video-to-learning-content pipeline package.

Import from the submodules directly (``services.content_pipeline.service``);
repositories import ``services.content_pipeline.errors``, so this package
must not import them back at load time.
"""
