"""The individual checks run against Kubernetes objects."""