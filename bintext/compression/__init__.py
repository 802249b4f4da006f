'''
Compression formats wrapping the archives on disk.
'''
