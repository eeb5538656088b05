"""
All the structures to describe the resources, their bodies, and the requests.

Grouped by their purpose: the references to resource kinds, the raw and decoded
bodies, the codecs between them, the params of the API calls, the credentials.

All the functions here are purely data-manipulative and computational.
No external calls or any i/o activities are done here.
"""
