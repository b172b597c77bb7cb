"""MyBlog: blog backend with a popular-posts ranking batch."""
