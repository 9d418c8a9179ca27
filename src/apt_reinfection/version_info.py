VERSION_INT = 0, 1, 0
VERSION = '.'.join([str(x) for x in VERSION_INT])
